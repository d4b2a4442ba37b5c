"""Per-phase progress aggregation over milestones."""

import logging
from typing import Dict

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import PROGRESS_PHASES, WorkStatus
from ..db.models import Milestone
from ..utils.helpers import calculate_percentage, parse_uuid

logger = logging.getLogger(__name__)


def empty_progress() -> Dict[str, int]:
    return {phase: 0 for phase in PROGRESS_PHASES}


def get_progress_stats(
    session: Session,
    project_id=None,
    episode_id=None,
) -> Dict[str, int]:
    """Completion percentage per reported phase.

    One grouped query counts all and done milestones per ``phase_category``
    for the project (or episode). Phases without tasks stay at 0 and the
    ``Master`` phase is never reported. Query failures are logged and the
    zeroed mapping is returned so a dashboard never fails on stats alone.
    """
    stats = empty_progress()
    if project_id is None and episode_id is None:
        return stats

    done = func.sum(case((Milestone.work_status == WorkStatus.DONE.value, 1), else_=0))
    query = session.query(
        Milestone.phase_category,
        func.count(Milestone.milestone_id).label("total"),
        done.label("done"),
    )
    if episode_id is not None:
        query = query.filter(Milestone.episode_id == parse_uuid(episode_id, "Episode"))
    else:
        query = query.filter(Milestone.project_id == parse_uuid(project_id, "Project"))

    try:
        rows = query.group_by(Milestone.phase_category).all()
    except SQLAlchemyError as e:
        logger.error(f"Error calculating progress stats: {e}")
        return empty_progress()

    for phase, total, done_count in rows:
        if phase in stats and total:
            stats[phase] = calculate_percentage(int(done_count or 0), int(total))
    return stats
