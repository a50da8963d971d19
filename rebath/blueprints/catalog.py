"""Catalog blueprint: fixture categories, fixture options and room types."""
from flask import Blueprint, g, request

from rebath.blueprints import arg_flag, json_body, success
from rebath.database import get_session
from rebath.middleware import require_admin, require_login
from rebath.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('/categories', methods=['GET'])
@require_login
def list_categories():
    categories = catalog_service.list_categories(get_session())
    return success([c.to_dict() for c in categories])


@catalog_bp.route('/categories', methods=['POST'])
@require_admin
def create_category():
    data = json_body()
    category = catalog_service.create_category(
        get_session(),
        g.user,
        data.get('name'),
        description=data.get('description'),
        display_order=data.get('display_order', 0),
    )
    return success(category.to_dict(), 201)


@catalog_bp.route('/categories/<category_id>', methods=['PATCH'])
@require_admin
def update_category(category_id):
    data = json_body()
    fields = {k: v for k, v in data.items() if k in ('name', 'description', 'display_order')}
    category = catalog_service.update_category(get_session(), g.user, category_id, **fields)
    return success(category.to_dict())


@catalog_bp.route('/options', methods=['GET'])
@require_login
def list_options():
    """
    Query params:
        category_id: restrict to one category
        q: search name/brand/model
        all: include inactive options (admins only)
    """
    include_inactive = arg_flag('all') and g.user.is_admin
    query = request.args.get('q', '').strip()
    db_session = get_session()

    if query:
        options = catalog_service.search_options(db_session, query, include_inactive=include_inactive)
        category_id = request.args.get('category_id')
        if category_id:
            options = [o for o in options if o.category_id == category_id]
    else:
        options = catalog_service.list_options(
            db_session,
            category_id=request.args.get('category_id') or None,
            include_inactive=include_inactive,
        )
    return success([o.to_dict() for o in options])


@catalog_bp.route('/options/<option_id>', methods=['GET'])
@require_login
def get_option(option_id):
    option = catalog_service.get_option(get_session(), option_id)
    return success(option.to_dict())


@catalog_bp.route('/options', methods=['POST'])
@require_admin
def create_option():
    option = catalog_service.create_option(get_session(), g.user, json_body())
    return success(option.to_dict(), 201)


@catalog_bp.route('/options/<option_id>', methods=['PATCH'])
@require_admin
def update_option(option_id):
    option = catalog_service.update_option(get_session(), g.user, option_id, json_body())
    return success(option.to_dict())


@catalog_bp.route('/options/<option_id>/deactivate', methods=['POST'])
@require_admin
def deactivate_option(option_id):
    option = catalog_service.deactivate_option(get_session(), g.user, option_id)
    return success(option.to_dict())


@catalog_bp.route('/room-types', methods=['GET'])
@require_login
def list_room_types():
    room_types = catalog_service.list_room_types(get_session())
    return success([r.to_dict() for r in room_types])
