"""
Authentication service for user accounts.

Handles sign-up, password login and the admin approval workflow. New
accounts start unapproved and cannot log in until an admin approves them.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from rebath.exceptions import Forbidden, NotFound, Unauthenticated, ValidationError, translate_db_errors
from rebath.models import Profile, UserRole
from rebath.services.sharing_service import require_user
from rebath.utils.formatters import parse_text

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: Optional[str]) -> str:
    email = (parse_text(email, 'email') or '').lower()
    if not email or '@' not in email:
        raise ValidationError('A valid email is required')
    return email


def _require_admin(user):
    require_user(user)
    if not user.is_admin:
        raise Forbidden('Administrator access required')


@translate_db_errors
def register(session, email: str, password: str, full_name: Optional[str] = None,
             role: str = UserRole.USER.value, approved: bool = False) -> Profile:
    """
    Create an account.

    Raises:
        ValidationError: bad email, short password, or email already registered
    """
    email = _normalize_email(email)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

    if session.query(Profile.id).filter(Profile.email == email).first():
        raise ValidationError('An account with this email already exists')

    profile = Profile(
        email=email,
        full_name=parse_text(full_name, 'full_name'),
        role=role,
        approved=approved,
        is_active=True,
    )
    profile.set_password(password)
    session.add(profile)
    try:
        session.commit()
    except IntegrityError:
        # Concurrent sign-up with the same email
        session.rollback()
        raise ValidationError('An account with this email already exists')

    logger.info(f"Account registered: {email} (role={role}, approved={approved})")
    return profile


@translate_db_errors
def authenticate(session, email: str, password: str) -> Profile:
    """
    Check credentials.

    Raises:
        Unauthenticated: unknown email, wrong password or disabled account
        Forbidden: account still waiting for approval
    """
    email = (parse_text(email, 'email') or '').lower()
    profile = session.query(Profile).filter(Profile.email == email).first()

    if not profile or not profile.is_active or not profile.check_password(password or ''):
        logger.warning(f"Failed login attempt for {email}")
        raise Unauthenticated('Invalid email or password')
    if not profile.approved:
        raise Forbidden('Your account is pending administrator approval')

    logger.info(f"User logged in: {email}")
    return profile


@translate_db_errors
def get_active_profile(session, user_id: str) -> Optional[Profile]:
    if not user_id:
        return None
    return session.query(Profile).filter(
        Profile.id == user_id,
        Profile.is_active == True,
        Profile.approved == True,
    ).first()


@translate_db_errors
def list_users(session, user) -> List[Profile]:
    _require_admin(user)
    return session.query(Profile).order_by(Profile.approved, Profile.created_at.desc()).all()


def _load_profile(session, profile_id) -> Profile:
    profile = session.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFound(f'User {profile_id} not found')
    return profile


@translate_db_errors
def approve_user(session, user, profile_id: str) -> Profile:
    _require_admin(user)
    profile = _load_profile(session, profile_id)
    profile.approved = True
    profile.is_active = True
    session.commit()
    logger.info(f"User {profile.email} approved by {user.email}")
    return profile


@translate_db_errors
def make_admin(session, user, profile_id: str) -> Profile:
    _require_admin(user)
    profile = _load_profile(session, profile_id)
    profile.role = UserRole.ADMIN.value
    session.commit()
    logger.info(f"User {profile.email} promoted to admin by {user.email}")
    return profile


@translate_db_errors
def update_profile(session, user, full_name: Optional[str] = None, avatar_url: Optional[str] = None) -> Profile:
    """Users edit their own name and avatar; role and approval are admin-only."""
    require_user(user)
    if full_name is not None:
        user.full_name = parse_text(full_name, 'full_name')
    if avatar_url is not None:
        user.avatar_url = parse_text(avatar_url, 'avatar_url')
    session.commit()
    return user
