"""ORM -> dict conversion.

Every manager returns plain dicts built inside its session, so the API
layer never touches detached ORM objects. Nested relations are only
serialized when asked for, keeping list endpoints cheap.
"""

from typing import Dict, Optional

from .db.models import Asset, Episode, Finance, Milestone, Project, ProjectCrew, User
from .utils.helpers import iso, to_float


def _id(value) -> Optional[str]:
    return str(value) if value is not None else None


def user_summary(user: Optional[User], with_role: bool = False) -> Optional[Dict]:
    if user is None:
        return None
    data = {"id": str(user.user_id), "name": user.name, "email": user.email}
    if with_role:
        data["role"] = user.role
    return data


def user_to_dict(user: User) -> Dict:
    """Full user record. The password hash is never included."""
    return {
        "id": str(user.user_id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "created_at": iso(user.created_at),
        "updated_at": iso(user.updated_at),
    }


def project_to_dict(project: Project) -> Dict:
    return {
        "id": str(project.project_id),
        "title": project.title,
        "type": project.type,
        "client_id": _id(project.client_id),
        "client_name": project.client_name,
        "investor_id": _id(project.investor_id),
        "investor_name": project.investor_name,
        "producer_id": _id(project.producer_id),
        "producer_name": project.producer_name,
        "total_budget_plan": to_float(project.total_budget_plan),
        "target_income": to_float(project.target_income),
        "start_date": iso(project.start_date),
        "deadline_date": iso(project.deadline_date),
        "description": project.description,
        "global_status": project.global_status,
        "created_at": iso(project.created_at),
        "updated_at": iso(project.updated_at),
    }


def project_summary(project: Optional[Project]) -> Optional[Dict]:
    if project is None:
        return None
    return {
        "id": str(project.project_id),
        "title": project.title,
        "type": project.type,
        "deadline_date": iso(project.deadline_date),
        "global_status": project.global_status,
    }


def episode_to_dict(episode: Episode) -> Dict:
    return {
        "id": str(episode.episode_id),
        "project_id": str(episode.project_id),
        "producer_id": _id(episode.producer_id),
        "producer_name": episode.producer_name,
        "title": episode.title,
        "episode_number": episode.episode_number,
        "status": episode.status,
        "synopsis": episode.synopsis,
        "airing_date": iso(episode.airing_date),
        "created_at": iso(episode.created_at),
        "updated_at": iso(episode.updated_at),
    }


def episode_summary(episode: Optional[Episode]) -> Optional[Dict]:
    if episode is None:
        return None
    return {
        "id": str(episode.episode_id),
        "title": episode.title,
        "episode_number": episode.episode_number,
        "status": episode.status,
    }


def milestone_to_dict(milestone: Milestone, with_relations: bool = False) -> Dict:
    data = {
        "id": str(milestone.milestone_id),
        "project_id": str(milestone.project_id),
        "episode_id": _id(milestone.episode_id),
        "user_id": str(milestone.user_id),
        "task_name": milestone.task_name,
        "phase_category": milestone.phase_category,
        "work_status": milestone.work_status,
        "honor_amount": to_float(milestone.honor_amount),
        "payment_status": milestone.payment_status,
        "created_at": iso(milestone.created_at),
        "updated_at": iso(milestone.updated_at),
    }
    if with_relations:
        data["user"] = user_summary(milestone.user)
        data["project"] = project_summary(milestone.project)
        data["episode"] = episode_summary(milestone.episode)
    return data


def milestone_summary(milestone: Milestone) -> Dict:
    return {
        "id": str(milestone.milestone_id),
        "phase_category": milestone.phase_category,
        "work_status": milestone.work_status,
    }


def finance_to_dict(finance: Finance, with_project: bool = False) -> Dict:
    data = {
        "id": str(finance.finance_id),
        "project_id": str(finance.project_id),
        "type": finance.type,
        "category": finance.category,
        "amount": to_float(finance.amount),
        "transaction_date": iso(finance.transaction_date),
        "description": finance.description,
        "status": finance.status,
        "created_at": iso(finance.created_at),
        "updated_at": iso(finance.updated_at),
    }
    if with_project:
        data["project"] = project_summary(finance.project)
    return data


def asset_to_dict(asset: Asset, with_relations: bool = False) -> Dict:
    data = {
        "id": str(asset.asset_id),
        "project_id": str(asset.project_id),
        "episode_id": _id(asset.episode_id),
        "file_name": asset.file_name,
        "file_path": asset.file_path,
        "file_type": asset.file_type,
        "file_size": asset.file_size,
        "category": asset.category,
        "is_public_to_broadcaster": bool(asset.is_public_to_broadcaster),
        "is_external": bool(asset.is_external),
        "external_url": asset.external_url,
        "link_type": asset.link_type,
        "uploaded_by": str(asset.uploaded_by),
        "created_at": iso(asset.created_at),
        "updated_at": iso(asset.updated_at),
    }
    if with_relations:
        data["project"] = project_summary(asset.project)
        data["episode"] = episode_summary(asset.episode)
        uploader = asset.uploader
        data["uploader"] = {"id": str(uploader.user_id), "name": uploader.name} if uploader else None
    return data


def crew_to_dict(assignment: ProjectCrew, with_project: bool = False) -> Dict:
    assigner = assignment.assigner
    data = {
        "id": assignment.id,
        "project_id": str(assignment.project_id),
        "user_id": str(assignment.user_id),
        "role_in_project": assignment.role_in_project,
        "assigned_by": _id(assignment.assigned_by),
        "assigned_at": iso(assignment.assigned_at),
        "user": user_summary(assignment.user, with_role=True),
        "assignedBy": {"id": str(assigner.user_id), "name": assigner.name} if assigner else None,
    }
    if with_project:
        data["project"] = project_summary(assignment.project)
    return data
