"""Project service: CRUD, listing and dashboard figures for projects."""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select

from rebath.exceptions import Forbidden, NotFound, ValidationError, translate_db_errors
from rebath.models import Project, ProjectPermission, ProjectPriority, ProjectStatus, ProjectType
from rebath.services.pricing import to_decimal
from rebath.services.sharing_service import can_edit, can_manage, can_read, require_user
from rebath.utils.formatters import parse_choice, parse_date, parse_text

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('client_name', 'client_email', 'client_phone', 'address', 'job_description', 'notes')
DATE_FIELDS = ('estimated_start_date', 'estimated_completion_date', 'actual_start_date', 'actual_completion_date')
ACTIVE_STATUSES = (ProjectStatus.STARTED.value, ProjectStatus.IN_PROGRESS.value)


def _load(session, project_id) -> Project:
    project = session.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFound(f'Project {project_id} not found')
    return project


def get_readable_project(session, user, project_id) -> Project:
    require_user(user)
    project = _load(session, project_id)
    if not can_read(session, project, user):
        raise Forbidden('You do not have access to this project')
    return project


def get_editable_project(session, user, project_id) -> Project:
    require_user(user)
    project = _load(session, project_id)
    if not can_edit(session, project, user):
        raise Forbidden('You do not have permission to modify this project')
    return project


def accessible_project_filter(user):
    """SQL criterion for projects the user owns or has been granted. None for admins (no restriction)."""
    if user.is_admin:
        return None
    shared = select(ProjectPermission.project_id).where(ProjectPermission.user_id == user.id)
    return or_(Project.user_id == user.id, Project.id.in_(shared))


def _accessible_query(session, user):
    query = session.query(Project)
    criterion = accessible_project_filter(user)
    if criterion is not None:
        query = query.filter(criterion)
    return query


def _apply_fields(project: Project, data: Dict[str, Any]) -> None:
    for field in TEXT_FIELDS:
        if field in data:
            setattr(project, field, parse_text(data[field], field))

    for field in DATE_FIELDS:
        if field in data:
            setattr(project, field, parse_date(data[field], field))

    if 'project_type' in data:
        project.project_type = parse_choice(data['project_type'], [t.value for t in ProjectType], 'project_type')
    if 'status' in data:
        project.status = parse_choice(data['status'], [s.value for s in ProjectStatus], 'status')
    if 'priority' in data:
        project.priority = parse_choice(data['priority'], [p.value for p in ProjectPriority], 'priority')

    if 'total_budget' in data:
        budget = data['total_budget']
        if budget is None or budget == '':
            project.total_budget = None
        else:
            budget = to_decimal(budget, 'total_budget')
            if budget < 0:
                raise ValidationError('total_budget cannot be negative')
            project.total_budget = budget

    if not project.client_name:
        raise ValidationError('client_name is required')
    if not project.address:
        raise ValidationError('address is required')


@translate_db_errors
def create_project(session, user, data: Dict[str, Any]) -> Project:
    require_user(user)
    project = Project(
        user_id=user.id,
        project_type=ProjectType.BATHROOM.value,
        status=ProjectStatus.ASSESSMENT.value,
        priority=ProjectPriority.MEDIUM.value,
    )
    _apply_fields(project, data)
    session.add(project)
    session.commit()
    logger.info(f"Project {project.id} created for client '{project.client_name}' by {user.email}")
    return project


@translate_db_errors
def get_project(session, user, project_id: str) -> Project:
    return get_readable_project(session, user, project_id)


@translate_db_errors
def list_projects(session, user, status: Optional[str] = None, priority: Optional[str] = None,
                  search: Optional[str] = None) -> List[Project]:
    """Owned and shared projects, newest first."""
    require_user(user)
    query = _accessible_query(session, user)

    if status:
        query = query.filter(Project.status == parse_choice(status, [s.value for s in ProjectStatus], 'status'))
    if priority:
        query = query.filter(Project.priority == parse_choice(priority, [p.value for p in ProjectPriority], 'priority'))
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(or_(
            Project.client_name.ilike(pattern),
            Project.address.ilike(pattern),
            Project.job_description.ilike(pattern),
        ))

    return query.order_by(Project.created_at.desc(), Project.client_name).all()


@translate_db_errors
def update_project(session, user, project_id: str, data: Dict[str, Any]) -> Project:
    """Any field may change, including status (no transition rules for projects)."""
    project = get_editable_project(session, user, project_id)
    previous_status = project.status
    _apply_fields(project, data)
    session.commit()

    if project.status != previous_status:
        logger.info(f"Project {project.id} status {previous_status} -> {project.status} by {user.email}")
    return project


@translate_db_errors
def start_project(session, user, project_id: str, today: Optional[date] = None) -> Project:
    project = get_editable_project(session, user, project_id)
    previous_status = project.status
    project.status = ProjectStatus.STARTED.value
    project.actual_start_date = today or date.today()
    session.commit()
    logger.info(f"Project {project.id} status {previous_status} -> started by {user.email}")
    return project


@translate_db_errors
def delete_project(session, user, project_id: str) -> None:
    """Deletes the project with its assessments, quotes, work items and grants."""
    require_user(user)
    project = _load(session, project_id)
    if not can_manage(project, user):
        raise Forbidden('Only the project owner or an administrator can delete a project')

    session.delete(project)
    session.commit()
    logger.info(f"Project {project_id} deleted by {user.email}")


@translate_db_errors
def project_stats(session, user) -> Dict[str, Any]:
    require_user(user)
    projects = _accessible_query(session, user).all()

    budgets = [p.total_budget for p in projects if p.total_budget is not None]
    total_budget = sum(budgets, Decimal('0'))
    return {
        'total': len(projects),
        'active': sum(1 for p in projects if p.status in ACTIVE_STATUSES),
        'completed': sum(1 for p in projects if p.status == ProjectStatus.COMPLETED.value),
        'total_budget': float(total_budget),
        'average_budget': float(total_budget / len(budgets)) if budgets else 0.0,
    }


@translate_db_errors
def projects_due_soon(session, user, days: int = 7, today: Optional[date] = None) -> List[Project]:
    """Open projects whose estimated completion falls within ``days``."""
    require_user(user)
    today = today or date.today()
    return _accessible_query(session, user).filter(
        Project.estimated_completion_date.isnot(None),
        Project.estimated_completion_date >= today,
        Project.estimated_completion_date <= today + timedelta(days=days),
        Project.status.notin_([ProjectStatus.COMPLETED.value, ProjectStatus.CANCELLED.value]),
    ).order_by(Project.estimated_completion_date).all()


@translate_db_errors
def recent_projects(session, user, limit: int = 5) -> List[Project]:
    require_user(user)
    return _accessible_query(session, user).order_by(Project.updated_at.desc()).limit(limit).all()
