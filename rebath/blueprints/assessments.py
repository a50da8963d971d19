"""Assessments blueprint: room surveys and their photos."""
from flask import Blueprint, g, request

from rebath.blueprints import json_body, success
from rebath.database import get_session
from rebath.exceptions import ValidationError
from rebath.middleware import require_login
from rebath.services import assessment_service
from rebath.services.storage_service import get_storage_service

assessments_bp = Blueprint('assessments', __name__, url_prefix='/assessments')

EDITABLE_FIELDS = ('room_type', 'room_name', 'fixtures', 'measurements', 'notes')


def _fields(data):
    return {k: v for k, v in data.items() if k in EDITABLE_FIELDS}


@assessments_bp.route('', methods=['POST'])
@require_login
def create_assessment():
    data = json_body()
    assessment = assessment_service.save_draft(get_session(), g.user, data.get('project_id'), _fields(data))
    return success(assessment.to_dict(), 201)


@assessments_bp.route('/drafts', methods=['GET'])
@require_login
def list_drafts():
    drafts = assessment_service.list_drafts(get_session(), g.user)
    return success([a.to_dict() for a in drafts])


@assessments_bp.route('/stats', methods=['GET'])
@require_login
def assessment_stats():
    return success(assessment_service.assessment_stats(get_session(), g.user))


@assessments_bp.route('/<assessment_id>', methods=['GET'])
@require_login
def get_assessment(assessment_id):
    assessment = assessment_service.get_assessment(get_session(), g.user, assessment_id)
    return success(assessment.to_dict())


@assessments_bp.route('/<assessment_id>', methods=['PATCH'])
@require_login
def update_assessment(assessment_id):
    data = json_body()
    assessment = assessment_service.save_draft(
        get_session(), g.user, data.get('project_id'), _fields(data), assessment_id=assessment_id
    )
    return success(assessment.to_dict())


@assessments_bp.route('/<assessment_id>', methods=['DELETE'])
@require_login
def delete_assessment(assessment_id):
    assessment_service.delete_assessment(get_session(), g.user, assessment_id, storage=get_storage_service())
    return success()


@assessments_bp.route('/<assessment_id>/submit', methods=['POST'])
@require_login
def submit_assessment(assessment_id):
    assessment = assessment_service.submit_assessment(get_session(), g.user, assessment_id)
    return success(assessment.to_dict())


@assessments_bp.route('/<assessment_id>/review', methods=['POST'])
@require_login
def review_assessment(assessment_id):
    assessment = assessment_service.review_assessment(get_session(), g.user, assessment_id)
    return success(assessment.to_dict())


@assessments_bp.route('/<assessment_id>/photos', methods=['POST'])
@require_login
def upload_photo(assessment_id):
    """Multipart upload, file field ``photo``."""
    file = request.files.get('photo')
    if file is None:
        raise ValidationError('No photo was uploaded (expected field "photo")')
    url = assessment_service.add_photo(get_session(), g.user, assessment_id, file, get_storage_service())
    return success({'url': url}, 201)


@assessments_bp.route('/<assessment_id>/photos', methods=['DELETE'])
@require_login
def delete_photo(assessment_id):
    data = json_body()
    if not data.get('url'):
        raise ValidationError('url is required')
    assessment = assessment_service.remove_photo(
        get_session(), g.user, assessment_id, data['url'], get_storage_service()
    )
    return success(assessment.to_dict())
