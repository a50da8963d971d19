"""Job work items: the per-room scope of work recorded on a project."""
import logging
from typing import Any, Dict, List, Optional

from rebath.exceptions import NotFound, ValidationError, translate_db_errors
from rebath.models import JobWorkItem, WorkItemPriority, WorkItemStatus
from rebath.services.pricing import to_decimal
from rebath.services.project_service import get_editable_project, get_readable_project
from rebath.utils.formatters import parse_choice, parse_text

logger = logging.getLogger(__name__)


def _apply(item: JobWorkItem, data: Dict[str, Any]) -> None:
    if 'room_type' in data:
        item.room_type = parse_text(data['room_type'], 'room_type')
    if 'work_description' in data:
        item.work_description = parse_text(data['work_description'], 'work_description')
    if 'estimated_hours' in data:
        hours = data['estimated_hours']
        if hours is None or hours == '':
            item.estimated_hours = None
        else:
            hours = to_decimal(hours, 'estimated_hours')
            if hours < 0:
                raise ValidationError('estimated_hours cannot be negative')
            item.estimated_hours = hours
    if 'priority' in data:
        item.priority = parse_choice(data['priority'], [p.value for p in WorkItemPriority], 'priority')
    if 'status' in data:
        item.status = parse_choice(data['status'], [s.value for s in WorkItemStatus], 'status')

    if not item.room_type:
        raise ValidationError('room_type is required')
    if not item.work_description:
        raise ValidationError('work_description is required')


@translate_db_errors
def list_work_items(session, user, project_id: str, room_type: Optional[str] = None) -> List[JobWorkItem]:
    project = get_readable_project(session, user, project_id)
    query = session.query(JobWorkItem).filter(JobWorkItem.project_id == project.id)
    if room_type:
        query = query.filter(JobWorkItem.room_type == room_type)
    return query.order_by(JobWorkItem.created_at).all()


@translate_db_errors
def create_work_item(session, user, project_id: str, data: Dict[str, Any]) -> JobWorkItem:
    project = get_editable_project(session, user, project_id)
    item = JobWorkItem(
        project_id=project.id,
        priority=WorkItemPriority.MEDIUM.value,
        status=WorkItemStatus.PENDING.value,
    )
    _apply(item, data)
    session.add(item)
    session.commit()
    logger.info(f"Work item {item.id} added to project {project.id} by {user.email}")
    return item


def _load(session, user, project_id, item_id) -> JobWorkItem:
    project = get_editable_project(session, user, project_id)
    item = session.query(JobWorkItem).filter(
        JobWorkItem.id == item_id,
        JobWorkItem.project_id == project.id,
    ).first()
    if not item:
        raise NotFound(f'Work item {item_id} not found')
    return item


@translate_db_errors
def update_work_item(session, user, project_id: str, item_id: str, data: Dict[str, Any]) -> JobWorkItem:
    item = _load(session, user, project_id, item_id)
    previous_status = item.status
    _apply(item, data)
    session.commit()
    if item.status != previous_status:
        logger.info(f"Work item {item.id} {previous_status} -> {item.status} by {user.email}")
    return item


@translate_db_errors
def delete_work_item(session, user, project_id: str, item_id: str) -> None:
    item = _load(session, user, project_id, item_id)
    session.delete(item)
    session.commit()
    logger.info(f"Work item {item_id} deleted from project {project_id} by {user.email}")
