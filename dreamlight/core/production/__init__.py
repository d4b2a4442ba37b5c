"""Crew tasks (milestones) and their approval workflow."""

from .milestone_manager import MilestoneManager

__all__ = ["MilestoneManager"]
