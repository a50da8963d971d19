"""Authentication blueprint: session login, sign-up and user approval."""
from flask import Blueprint, g, session
from flask_wtf.csrf import generate_csrf

from rebath.blueprints import json_body, success
from rebath.database import get_session
from rebath.forms import validated
from rebath.forms.auth_forms import LoginForm, RegisterForm
from rebath.middleware import require_admin, require_login
from rebath.services import auth_service

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token to send back in the X-CSRFToken header on writes."""
    return success({'csrf_token': generate_csrf()})


@auth_bp.route('/register', methods=['POST'])
def register():
    form = validated(RegisterForm)
    profile = auth_service.register(
        get_session(),
        form.email.data,
        form.password.data,
        full_name=form.full_name.data,
    )
    return success(profile.to_dict(), 201, message='Account created; waiting for administrator approval')


@auth_bp.route('/login', methods=['POST'])
def login():
    form = validated(LoginForm)
    profile = auth_service.authenticate(get_session(), form.email.data, form.password.data)

    session.clear()
    session['user_id'] = profile.id
    session.permanent = True
    return success(profile.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return success()


@auth_bp.route('/me', methods=['GET'])
@require_login
def me():
    return success(g.user.to_dict())


@auth_bp.route('/me', methods=['PATCH'])
@require_login
def update_me():
    data = json_body()
    profile = auth_service.update_profile(
        get_session(),
        g.user,
        full_name=data.get('full_name'),
        avatar_url=data.get('avatar_url'),
    )
    return success(profile.to_dict())


@auth_bp.route('/users', methods=['GET'])
@require_admin
def list_users():
    users = auth_service.list_users(get_session(), g.user)
    return success([u.to_dict() for u in users])


@auth_bp.route('/users/<user_id>/approve', methods=['POST'])
@require_admin
def approve_user(user_id):
    profile = auth_service.approve_user(get_session(), g.user, user_id)
    return success(profile.to_dict())


@auth_bp.route('/users/<user_id>/make-admin', methods=['POST'])
@require_admin
def make_admin(user_id):
    profile = auth_service.make_admin(get_session(), g.user, user_id)
    return success(profile.to_dict())
