"""Assessment service: room surveys, their review workflow and photos."""
import logging
import mimetypes
import os
import uuid
from typing import Any, Dict, List, Optional

from rebath.exceptions import BackendUnavailable, Forbidden, NotFound, ValidationError, translate_db_errors
from rebath.models import Assessment, AssessmentStatus, Quote
from rebath.services.pricing import to_decimal
from rebath.services.project_service import get_editable_project, get_readable_project
from rebath.services.sharing_service import require_user
from rebath.utils.formatters import parse_text

logger = logging.getLogger(__name__)

MEASUREMENT_KEYS = ('width', 'length', 'height')


def _validate_payload(data: Dict[str, Any]) -> None:
    for field in ('room_type', 'room_name'):
        if field in data:
            parse_text(data[field], field, required=True)
    if 'notes' in data:
        parse_text(data['notes'], 'notes')
    if 'fixtures' in data and not isinstance(data['fixtures'] or [], list):
        raise ValidationError('fixtures must be a list')
    if 'measurements' in data:
        measurements = data['measurements'] or {}
        if not isinstance(measurements, dict):
            raise ValidationError('measurements must be an object')
        for key in MEASUREMENT_KEYS:
            value = measurements.get(key)
            if value in (None, ''):
                continue
            if to_decimal(value, key) < 0:
                raise ValidationError(f'{key} cannot be negative')


def _apply(assessment: Assessment, data: Dict[str, Any]) -> None:
    if 'room_type' in data:
        assessment.room_type = parse_text(data['room_type'], 'room_type', required=True)
    if 'room_name' in data:
        assessment.room_name = parse_text(data['room_name'], 'room_name', required=True)
    if 'fixtures' in data:
        assessment.fixtures = list(data['fixtures'] or [])
    if 'measurements' in data:
        assessment.measurements = dict(data['measurements'] or {})
    if 'notes' in data:
        assessment.notes = parse_text(data['notes'], 'notes')


def _load(session, assessment_id) -> Assessment:
    assessment = session.query(Assessment).filter(Assessment.id == assessment_id).first()
    if not assessment:
        raise NotFound(f'Assessment {assessment_id} not found')
    return assessment


def _load_editable(session, user, assessment_id) -> Assessment:
    require_user(user)
    assessment = _load(session, assessment_id)
    get_editable_project(session, user, assessment.project_id)
    return assessment


@translate_db_errors
def save_draft(session, user, project_id: Optional[str], data: Dict[str, Any],
               assessment_id: Optional[str] = None) -> Assessment:
    """
    Create a draft assessment, or update an existing one.

    Only drafts can be edited; submitted and reviewed surveys are frozen.
    """
    _validate_payload(data)

    if assessment_id:
        assessment = _load_editable(session, user, assessment_id)
        if project_id and assessment.project_id != project_id:
            raise ValidationError('Assessment does not belong to this project')
        if assessment.status != AssessmentStatus.DRAFT.value:
            raise ValidationError(f'Only draft assessments can be edited (assessment is {assessment.status})')
        _apply(assessment, data)
    else:
        project = get_editable_project(session, user, project_id)
        if not (data.get('room_type') and data.get('room_name')):
            raise ValidationError('room_type and room_name are required')
        assessment = Assessment(
            project_id=project.id,
            user_id=user.id,
            status=AssessmentStatus.DRAFT.value,
            fixtures=[],
            measurements={},
            photos=[],
        )
        _apply(assessment, data)
        session.add(assessment)

    session.commit()
    logger.info(f"Assessment {assessment.id} ({assessment.room_name}) saved by {user.email}")
    return assessment


@translate_db_errors
def get_assessment(session, user, assessment_id: str) -> Assessment:
    require_user(user)
    assessment = _load(session, assessment_id)
    get_readable_project(session, user, assessment.project_id)
    return assessment


@translate_db_errors
def list_project_assessments(session, user, project_id: str) -> List[Assessment]:
    project = get_readable_project(session, user, project_id)
    return session.query(Assessment).filter(Assessment.project_id == project.id).order_by(
        Assessment.created_at.desc()
    ).all()


@translate_db_errors
def list_drafts(session, user) -> List[Assessment]:
    """The user's own unfinished surveys, most recently touched first."""
    require_user(user)
    return session.query(Assessment).filter(
        Assessment.user_id == user.id,
        Assessment.status == AssessmentStatus.DRAFT.value,
    ).order_by(Assessment.updated_at.desc()).all()


@translate_db_errors
def submit_assessment(session, user, assessment_id: str) -> Assessment:
    assessment = _load_editable(session, user, assessment_id)
    if assessment.status != AssessmentStatus.DRAFT.value:
        raise ValidationError(f'Invalid transition: {assessment.status} -> submitted')

    assessment.status = AssessmentStatus.SUBMITTED.value
    session.commit()
    logger.info(f"Assessment {assessment.id} draft -> submitted by {user.email}")
    return assessment


@translate_db_errors
def review_assessment(session, user, assessment_id: str) -> Assessment:
    require_user(user)
    if not user.is_admin:
        raise Forbidden('Only administrators can review assessments')

    assessment = _load(session, assessment_id)
    if assessment.status != AssessmentStatus.SUBMITTED.value:
        raise ValidationError(f'Invalid transition: {assessment.status} -> reviewed')

    assessment.status = AssessmentStatus.REVIEWED.value
    session.commit()
    logger.info(f"Assessment {assessment.id} submitted -> reviewed by {user.email}")
    return assessment


@translate_db_errors
def delete_assessment(session, user, assessment_id: str, storage=None) -> None:
    """Delete a survey. Quotes built from it keep their items but lose the link."""
    assessment = _load_editable(session, user, assessment_id)
    photos = list(assessment.photos or [])

    session.query(Quote).filter(Quote.assessment_id == assessment.id).update(
        {Quote.assessment_id: None}, synchronize_session=False
    )
    session.delete(assessment)
    session.commit()
    logger.info(f"Assessment {assessment_id} deleted by {user.email}")

    if storage is not None:
        for url in photos:
            object_name = storage.object_name_from_url(url)
            if not object_name:
                continue
            try:
                storage.delete_file(object_name)
            except BackendUnavailable:
                logger.warning(f"Orphaned photo left in storage: {object_name}")


@translate_db_errors
def assessment_stats(session, user) -> Dict[str, int]:
    require_user(user)
    statuses = [row[0] for row in session.query(Assessment.status).filter(Assessment.user_id == user.id).all()]
    return {
        'total': len(statuses),
        'total_drafts': statuses.count(AssessmentStatus.DRAFT.value),
        'pending_assessments': statuses.count(AssessmentStatus.SUBMITTED.value),
        'completed_assessments': statuses.count(AssessmentStatus.REVIEWED.value),
    }


def photo_object_name(assessment_id: str, filename: str, content_type: Optional[str] = None) -> str:
    """``assessments/<assessment_id>/<uuid>.<ext>``"""
    ext = os.path.splitext(filename or '')[1].lower().lstrip('.')
    if not ext and content_type:
        ext = (mimetypes.guess_extension(content_type) or '').lstrip('.')
    return f"assessments/{assessment_id}/{uuid.uuid4()}.{ext or 'bin'}"


@translate_db_errors
def add_photo(session, user, assessment_id: str, file, storage) -> str:
    """Upload a photo and append its public URL to the assessment."""
    assessment = _load_editable(session, user, assessment_id)

    object_name = photo_object_name(assessment.id, file.filename, file.content_type)
    url = storage.upload_file(file, object_name)

    assessment.photos = list(assessment.photos or []) + [url]
    session.commit()
    logger.info(f"Photo added to assessment {assessment.id} by {user.email}")
    return url


@translate_db_errors
def remove_photo(session, user, assessment_id: str, url: str, storage) -> Assessment:
    assessment = _load_editable(session, user, assessment_id)
    photos = list(assessment.photos or [])
    if url not in photos:
        raise NotFound('Photo not found on this assessment')

    photos.remove(url)
    assessment.photos = photos
    session.commit()
    logger.info(f"Photo removed from assessment {assessment.id} by {user.email}")

    object_name = storage.object_name_from_url(url)
    if object_name:
        try:
            storage.delete_file(object_name)
        except BackendUnavailable:
            logger.warning(f"Orphaned photo left in storage: {object_name}")
    return assessment
