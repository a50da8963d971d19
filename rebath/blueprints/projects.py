"""Projects blueprint: project CRUD, sharing and work items."""
from flask import Blueprint, g, request

from rebath.blueprints import json_body, require_confirmation, success
from rebath.blueprints.metrics import projects_deleted_total
from rebath.database import get_session
from rebath.forms import validated
from rebath.forms.project_forms import ShareProjectForm
from rebath.middleware import require_login
from rebath.services import (
    assessment_service,
    job_work_service,
    project_service,
    quote_service,
    sharing_service,
)
from rebath.utils.formatters import parse_int

projects_bp = Blueprint('projects', __name__, url_prefix='/projects')


def _int_arg(name, default):
    return parse_int(request.args.get(name), name, default=default)


@projects_bp.route('', methods=['GET'])
@require_login
def list_projects():
    projects = project_service.list_projects(
        get_session(),
        g.user,
        status=request.args.get('status') or None,
        priority=request.args.get('priority') or None,
        search=request.args.get('q') or None,
    )
    return success([p.to_dict() for p in projects])


@projects_bp.route('', methods=['POST'])
@require_login
def create_project():
    project = project_service.create_project(get_session(), g.user, json_body())
    return success(project.to_dict(), 201)


@projects_bp.route('/stats', methods=['GET'])
@require_login
def project_stats():
    return success(project_service.project_stats(get_session(), g.user))


@projects_bp.route('/due-soon', methods=['GET'])
@require_login
def due_soon():
    projects = project_service.projects_due_soon(get_session(), g.user, days=_int_arg('days', 7))
    return success([p.to_dict() for p in projects])


@projects_bp.route('/recent', methods=['GET'])
@require_login
def recent():
    projects = project_service.recent_projects(get_session(), g.user, limit=_int_arg('limit', 5))
    return success([p.to_dict() for p in projects])


@projects_bp.route('/<project_id>', methods=['GET'])
@require_login
def get_project(project_id):
    project = project_service.get_project(get_session(), g.user, project_id)
    return success(project.to_dict())


@projects_bp.route('/<project_id>', methods=['PATCH'])
@require_login
def update_project(project_id):
    project = project_service.update_project(get_session(), g.user, project_id, json_body())
    return success(project.to_dict())


@projects_bp.route('/<project_id>', methods=['DELETE'])
@require_login
def delete_project(project_id):
    """Deletes the project and everything attached to it."""
    require_confirmation(json_body())
    project_service.delete_project(get_session(), g.user, project_id)
    projects_deleted_total.inc()
    return success()


@projects_bp.route('/<project_id>/start', methods=['POST'])
@require_login
def start_project(project_id):
    project = project_service.start_project(get_session(), g.user, project_id)
    return success(project.to_dict())


@projects_bp.route('/<project_id>/quotes', methods=['GET'])
@require_login
def project_quotes(project_id):
    quotes = quote_service.list_project_quotes(get_session(), g.user, project_id)
    return success([q.to_dict() for q in quotes])


@projects_bp.route('/<project_id>/assessments', methods=['GET'])
@require_login
def project_assessments(project_id):
    assessments = assessment_service.list_project_assessments(get_session(), g.user, project_id)
    return success([a.to_dict() for a in assessments])


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

@projects_bp.route('/<project_id>/permissions', methods=['GET'])
@require_login
def list_permissions(project_id):
    return success(sharing_service.list_permissions(get_session(), g.user, project_id))


@projects_bp.route('/<project_id>/permissions', methods=['POST'])
@require_login
def share_project(project_id):
    form = validated(ShareProjectForm)
    grant = sharing_service.share_project(
        get_session(),
        g.user,
        project_id,
        form.user_id.data,
        form.permission_type.data,
    )
    return success(grant.to_dict(), 201)


@projects_bp.route('/<project_id>/permissions/<user_id>', methods=['DELETE'])
@require_login
def revoke_access(project_id, user_id):
    require_confirmation(json_body())
    sharing_service.revoke_access(get_session(), g.user, project_id, user_id)
    return success()


# ---------------------------------------------------------------------------
# Work items
# ---------------------------------------------------------------------------

@projects_bp.route('/<project_id>/work-items', methods=['GET'])
@require_login
def list_work_items(project_id):
    items = job_work_service.list_work_items(
        get_session(), g.user, project_id, room_type=request.args.get('room_type') or None
    )
    return success([i.to_dict() for i in items])


@projects_bp.route('/<project_id>/work-items', methods=['POST'])
@require_login
def create_work_item(project_id):
    item = job_work_service.create_work_item(get_session(), g.user, project_id, json_body())
    return success(item.to_dict(), 201)


@projects_bp.route('/<project_id>/work-items/<item_id>', methods=['PATCH'])
@require_login
def update_work_item(project_id, item_id):
    item = job_work_service.update_work_item(get_session(), g.user, project_id, item_id, json_body())
    return success(item.to_dict())


@projects_bp.route('/<project_id>/work-items/<item_id>', methods=['DELETE'])
@require_login
def delete_work_item(project_id, item_id):
    job_work_service.delete_work_item(get_session(), g.user, project_id, item_id)
    return success()
