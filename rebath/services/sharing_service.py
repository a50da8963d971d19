"""
Sharing service: who may read, edit or manage a project.

A project's owner and global admins can manage it. Other users get access
through a ``ProjectPermission`` row. Every mutating operation re-checks the
caller on each call; nothing is cached.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List

from rebath.exceptions import Forbidden, NotFound, Unauthenticated, ValidationError, translate_db_errors
from rebath.models import PermissionType, Profile, Project, ProjectPermission

logger = logging.getLogger(__name__)

EDIT_GRANTS = (PermissionType.EDIT.value, PermissionType.ADMIN.value)


def require_user(user):
    if user is None:
        raise Unauthenticated()
    return user


def _grant(session, project, user):
    return session.query(ProjectPermission).filter(
        ProjectPermission.project_id == project.id,
        ProjectPermission.user_id == user.id,
    ).first()


def can_manage(project: Project, user) -> bool:
    """Owner or global admin."""
    if user is None:
        return False
    return project.user_id == user.id or user.is_admin


def can_read(session, project: Project, user) -> bool:
    """Owner, admin, or any grant on the project."""
    if user is None:
        return False
    if can_manage(project, user):
        return True
    return _grant(session, project, user) is not None


def can_edit(session, project: Project, user) -> bool:
    """Owner, admin, or an ``edit``/``admin`` grant."""
    if user is None:
        return False
    if can_manage(project, user):
        return True
    grant = _grant(session, project, user)
    return grant is not None and grant.permission_type in EDIT_GRANTS


def _load_project(session, project_id):
    project = session.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFound(f'Project {project_id} not found')
    return project


def _require_manage(session, user, project_id):
    require_user(user)
    project = _load_project(session, project_id)
    if not can_manage(project, user):
        raise Forbidden('Only the project owner or an administrator can manage sharing')
    return project


@translate_db_errors
def share_project(session, user, project_id: str, grantee_id: str, permission_type: str) -> ProjectPermission:
    """
    Grant (or change) a user's access to a project.

    There is at most one grant per (project, user): sharing again overwrites
    the type, the grantor and ``granted_at``.
    """
    project = _require_manage(session, user, project_id)

    valid_types = [p.value for p in PermissionType]
    if permission_type not in valid_types:
        raise ValidationError(f"permission_type must be one of: {', '.join(valid_types)}")

    grantee = session.query(Profile).filter(Profile.id == grantee_id).first()
    if not grantee:
        raise NotFound(f'User {grantee_id} not found')
    if grantee.id == project.user_id:
        raise ValidationError('The project owner already has full access')

    grant = _grant(session, project, grantee)
    if grant:
        grant.permission_type = permission_type
        grant.granted_by = user.id
        grant.granted_at = datetime.now(timezone.utc)
    else:
        grant = ProjectPermission(
            project_id=project.id,
            user_id=grantee.id,
            permission_type=permission_type,
            granted_by=user.id,
        )
        session.add(grant)

    session.commit()
    logger.info(f"Project {project.id} shared with {grantee.email} ({permission_type}) by {user.email}")
    return grant


@translate_db_errors
def revoke_access(session, user, project_id: str, grantee_id: str) -> None:
    project = _require_manage(session, user, project_id)

    grant = session.query(ProjectPermission).filter(
        ProjectPermission.project_id == project.id,
        ProjectPermission.user_id == grantee_id,
    ).first()
    if not grant:
        raise NotFound('No permission found for this user')

    session.delete(grant)
    session.commit()
    logger.info(f"Access to project {project.id} revoked for user {grantee_id} by {user.email}")


@translate_db_errors
def list_permissions(session, user, project_id: str) -> List[Dict]:
    """Grants on a project, each joined with the grantee's name and email."""
    project = _require_manage(session, user, project_id)

    grants = session.query(ProjectPermission).filter(
        ProjectPermission.project_id == project.id
    ).order_by(ProjectPermission.granted_at).all()
    if not grants:
        return []

    user_ids = [g.user_id for g in grants]
    profiles = {
        p.id: p for p in session.query(Profile).filter(Profile.id.in_(user_ids)).all()
    }

    result = []
    for grant in grants:
        row = grant.to_dict()
        profile = profiles.get(grant.user_id)
        row['full_name'] = profile.full_name if profile else None
        row['email'] = profile.email if profile else None
        result.append(row)
    return result
