"""Tests for question catalogs."""

from importlib import resources

import pytest
import yaml

from skill_rating import (
    CatalogError,
    QuestionType,
    SportCatalog,
    UnknownSportError,
    available_sports,
    load_catalog,
    load_catalog_file,
)
from skill_rating.catalog import bundled_sports, catalog_from_dict


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def raw_catalog() -> dict:
    """The bundled pickleball catalog as plain YAML data."""
    text = resources.files("skill_rating.catalog.data").joinpath("pickleball.yaml").read_text(
        encoding="utf-8"
    )
    return yaml.safe_load(text)


def write_catalog(directory, name: str, data: dict):
    path = directory / f"{name}.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ============================================================================
# Bundled Catalog Tests
# ============================================================================


class TestBundledCatalog:
    """Tests for the shipped pickleball catalog."""

    def test_loads(self):
        catalog = load_catalog("pickleball")
        assert isinstance(catalog, SportCatalog)
        assert catalog.sport == "pickleball"
        assert catalog.reference.system == "DUPR"
        assert catalog.rating_name == "DMR"

    def test_bundled_sports(self):
        assert "pickleball" in bundled_sports()
        assert "pickleball" in available_sports()

    def test_question_order_starts_with_gate(self):
        catalog = load_catalog("pickleball")
        assert catalog.questions[0].key == catalog.reference.gate_key

    def test_visibility_rules_parsed(self):
        catalog = load_catalog("pickleball")
        rule = catalog.question("dupr_singles").visibility_rule
        assert (rule.key, rule.operator, rule.value) == ("has_dupr", "==", "Yes")
        assert catalog.question("dupr_singles_reliability").visibility_rule.operator == "exists"

    def test_composite(self):
        skills = load_catalog("pickleball").question("skills")
        assert skills.type == QuestionType.COMPOSITE
        assert list(skills.sub_questions) == ["serving", "dinking", "volleys", "positioning"]

    def test_unknown_question(self):
        assert load_catalog("pickleball").question("handedness") is None

    def test_unknown_sport(self):
        with pytest.raises(UnknownSportError) as exc_info:
            load_catalog("tennis")
        assert exc_info.value.sport == "tennis"
        assert "pickleball" in exc_info.value.supported


# ============================================================================
# Loading Tests
# ============================================================================


class TestLoading:
    """Tests for loading catalogs from files and directories."""

    def test_new_sport_from_directory(self, tmp_path, raw_catalog):
        raw_catalog["sport"] = "padel"
        raw_catalog["display_name"] = "Padel"
        write_catalog(tmp_path, "padel", raw_catalog)

        assert "padel" in available_sports(tmp_path)
        assert load_catalog("padel", tmp_path).display_name == "Padel"

    def test_directory_overrides_bundled(self, tmp_path, raw_catalog):
        raw_catalog["version"] = 99
        write_catalog(tmp_path, "pickleball", raw_catalog)
        assert load_catalog("pickleball", tmp_path).version == 99

    def test_missing_directory_entry_falls_back(self, tmp_path):
        assert load_catalog("pickleball", tmp_path).version == 3

    def test_file_not_found(self, tmp_path):
        with pytest.raises(CatalogError, match="File not found"):
            load_catalog_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("sport: [unclosed", encoding="utf-8")
        with pytest.raises(CatalogError, match="Invalid YAML"):
            load_catalog_file(path)

    def test_not_a_mapping(self):
        with pytest.raises(CatalogError, match="Expected a mapping"):
            catalog_from_dict(["pickleball"], source="inline")


# ============================================================================
# Validation Tests
# ============================================================================


class TestValidation:
    """Tests for catalog consistency checks."""

    def test_weights_must_match_options(self, raw_catalog):
        raw_catalog["categories"]["experience"]["weights"]["Decades"] = 1.0
        with pytest.raises(CatalogError, match="do not match the question options"):
            catalog_from_dict(raw_catalog)

    def test_weight_out_of_range(self, raw_catalog):
        raw_catalog["categories"]["frequency"]["weights"]["4+ times a week"] = 1.5
        with pytest.raises(CatalogError, match=r"within \[-1, 1\]"):
            catalog_from_dict(raw_catalog)

    def test_composite_sub_weights(self, raw_catalog):
        del raw_catalog["composites"]["skills"]["weights"]["volleys"]
        with pytest.raises(CatalogError, match="sub-questions"):
            catalog_from_dict(raw_catalog)

    def test_duplicate_keys(self, raw_catalog):
        raw_catalog["questions"].append(dict(raw_catalog["questions"][0]))
        with pytest.raises(CatalogError, match="duplicate question key 'has_dupr'"):
            catalog_from_dict(raw_catalog)

    def test_reference_keys_need_questions(self, raw_catalog):
        raw_catalog["reference"]["doubles_key"] = "dupr_mixed"
        with pytest.raises(CatalogError, match="dupr_mixed"):
            catalog_from_dict(raw_catalog)

    def test_affirmative_must_be_gate_option(self, raw_catalog):
        raw_catalog["reference"]["affirmative"] = "Yep"
        with pytest.raises(CatalogError, match="'Yep' is not an option of 'has_dupr'"):
            catalog_from_dict(raw_catalog)

    def test_gate_rules_use_affirmative(self, raw_catalog):
        dupr_singles = next(q for q in raw_catalog["questions"] if q["key"] == "dupr_singles")
        dupr_singles["visibility_rule"]["value"] = "No"
        with pytest.raises(CatalogError, match="'dupr_singles' is gated on 'No'"):
            catalog_from_dict(raw_catalog)

    def test_other_affirmative_answer(self, raw_catalog):
        """Renaming the gate answer is a data change in the options, rules and reference."""
        gate = raw_catalog["questions"][0]
        gate["options"] = ["Yes, I do", "No"]
        raw_catalog["reference"]["affirmative"] = "Yes, I do"
        for question in raw_catalog["questions"]:
            rule = question.get("visibility_rule")
            if rule and rule["key"] == "has_dupr":
                rule["value"] = "Yes, I do"
        catalog = catalog_from_dict(raw_catalog)
        assert catalog.reference.affirmative == "Yes, I do"

    def test_conversion_must_increase(self, raw_catalog):
        raw_catalog["reference"]["conversion"][2] = [2.9, 2900]
        with pytest.raises(CatalogError, match="conversion knots must increase"):
            catalog_from_dict(raw_catalog)

    def test_last_tier_open_ended(self, raw_catalog):
        raw_catalog["tiers"][-1]["below"] = 9000
        with pytest.raises(CatalogError, match="open-ended"):
            catalog_from_dict(raw_catalog)

    def test_error_names_source(self, raw_catalog):
        raw_catalog["tiers"] = []
        with pytest.raises(CatalogError, match="custom.yaml") as exc_info:
            catalog_from_dict(raw_catalog, source="custom.yaml")
        assert exc_info.value.path == "custom.yaml"
