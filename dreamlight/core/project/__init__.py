"""
Project Management Module

Exports:
- ProjectManager: CRUD and role-scoped listings for projects
- EpisodeManager: episodes of Series projects
- CrewManager: crew assignment per project
- get_progress_stats: per-phase completion percentages
"""

from .crew_manager import CrewManager
from .episode_manager import EpisodeManager
from .progress import get_progress_stats
from .project_manager import ProjectManager

__all__ = [
    "ProjectManager",
    "EpisodeManager",
    "CrewManager",
    "get_progress_stats",
]
