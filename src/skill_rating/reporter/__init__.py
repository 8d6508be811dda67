"""Reporting for Skill Rating results."""

from .feedback import FeedbackReporter

__all__ = ["FeedbackReporter"]
