"""Catalog service: fixture categories, fixture options and room types."""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_

from rebath.exceptions import Forbidden, NotFound, ValidationError, translate_db_errors
from rebath.models import FixtureCategory, FixtureOption, RoomType
from rebath.services.pricing import to_decimal
from rebath.utils.formatters import parse_int, parse_text

logger = logging.getLogger(__name__)

OPTION_FIELDS = ('name', 'description', 'brand', 'model', 'size', 'material', 'color', 'image_url')
REQUIRED_OPTION_FIELDS = ('name', 'brand', 'model')


@translate_db_errors
def list_categories(session) -> List[FixtureCategory]:
    return session.query(FixtureCategory).order_by(
        FixtureCategory.display_order, FixtureCategory.name
    ).all()


@translate_db_errors
def get_category(session, category_id: str) -> FixtureCategory:
    category = session.query(FixtureCategory).filter(FixtureCategory.id == category_id).first()
    if not category:
        raise NotFound(f'Category {category_id} not found')
    return category


@translate_db_errors
def list_options(session, category_id: Optional[str] = None, include_inactive: bool = False) -> List[FixtureOption]:
    """Options ordered by name. Inactive options are only listed for the admin view."""
    query = session.query(FixtureOption)
    if category_id:
        query = query.filter(FixtureOption.category_id == category_id)
    if not include_inactive:
        query = query.filter(FixtureOption.is_active == True)
    return query.order_by(FixtureOption.name).all()


@translate_db_errors
def search_options(session, query: Optional[str], include_inactive: bool = False) -> List[FixtureOption]:
    """
    Case-insensitive substring search over name, brand and model.

    A blank query behaves like ``list_options``.
    """
    term = (query or '').strip()
    if not term:
        return list_options(session, include_inactive=include_inactive)

    pattern = f'%{term}%'
    q = session.query(FixtureOption).filter(
        or_(
            FixtureOption.name.ilike(pattern),
            FixtureOption.brand.ilike(pattern),
            FixtureOption.model.ilike(pattern),
        )
    )
    if not include_inactive:
        q = q.filter(FixtureOption.is_active == True)
    return q.order_by(FixtureOption.name).all()


@translate_db_errors
def get_option(session, option_id: str) -> FixtureOption:
    option = session.query(FixtureOption).filter(FixtureOption.id == option_id).first()
    if not option:
        raise NotFound(f'Fixture option {option_id} not found')
    return option


@translate_db_errors
def list_room_types(session, include_inactive: bool = False) -> List[RoomType]:
    query = session.query(RoomType)
    if not include_inactive:
        query = query.filter(RoomType.is_active == True)
    return query.order_by(RoomType.display_order, RoomType.name).all()


# ---------------------------------------------------------------------------
# Admin maintenance
# ---------------------------------------------------------------------------

def _require_admin(user):
    if user is None or not user.is_admin:
        raise Forbidden('Only administrators can maintain the catalog')


def _price(data: dict, key: str, default=None) -> Optional[Decimal]:
    if key not in data or data[key] in (None, ''):
        return default
    value = to_decimal(data[key], key)
    if value < 0:
        raise ValidationError(f'{key} cannot be negative')
    return value


@translate_db_errors
def create_category(session, user, name: str, description: Optional[str] = None,
                    display_order: int = 0) -> FixtureCategory:
    _require_admin(user)
    name = parse_text(name, 'Category name', required=True)

    category = FixtureCategory(
        name=name,
        description=parse_text(description, 'description'),
        display_order=parse_int(display_order, 'display_order'),
    )
    session.add(category)
    session.commit()
    logger.info(f"Category '{name}' created by {user.email}")
    return category


@translate_db_errors
def update_category(session, user, category_id: str, **fields) -> FixtureCategory:
    _require_admin(user)
    category = get_category(session, category_id)

    if 'name' in fields:
        category.name = parse_text(fields['name'], 'Category name', required=True)
    if 'description' in fields:
        category.description = parse_text(fields['description'], 'description')
    if 'display_order' in fields:
        category.display_order = parse_int(fields['display_order'], 'display_order')

    session.commit()
    return category


@translate_db_errors
def create_option(session, user, data: dict) -> FixtureOption:
    """Create a catalog option. ``data`` uses the column names of ``FixtureOption``."""
    _require_admin(user)

    text_fields = {
        field: parse_text(data.get(field), field, required=field in REQUIRED_OPTION_FIELDS)
        for field in OPTION_FIELDS
    }

    base_price = _price(data, 'base_price')
    if base_price is None:
        raise ValidationError('base_price is required')

    category = get_category(session, parse_text(data.get('category_id'), 'category_id', required=True))

    option = FixtureOption(
        category_id=category.id,
        base_price=base_price,
        installation_cost=_price(data, 'installation_cost', Decimal('0')),
        is_active=bool(data.get('is_active', True)),
        **text_fields,
    )
    session.add(option)
    session.commit()
    logger.info(f"Fixture option '{option.name}' created by {user.email}")
    return option


@translate_db_errors
def update_option(session, user, option_id: str, data: dict) -> FixtureOption:
    _require_admin(user)
    option = get_option(session, option_id)

    for field in OPTION_FIELDS:
        if field in data:
            setattr(option, field, parse_text(data[field], field, required=field in REQUIRED_OPTION_FIELDS))

    if 'base_price' in data:
        base_price = _price(data, 'base_price')
        if base_price is None:
            raise ValidationError('base_price is required')
        option.base_price = base_price
    if 'installation_cost' in data:
        option.installation_cost = _price(data, 'installation_cost', Decimal('0'))
    if 'category_id' in data:
        option.category_id = get_category(session, parse_text(data['category_id'], 'category_id', required=True)).id
    if 'is_active' in data:
        option.is_active = bool(data['is_active'])

    session.commit()
    return option


@translate_db_errors
def deactivate_option(session, user, option_id: str) -> FixtureOption:
    """Soft delete. Options are never removed because quotes reference them by id."""
    _require_admin(user)
    option = get_option(session, option_id)
    option.is_active = False
    session.commit()
    logger.info(f"Fixture option {option_id} deactivated by {user.email}")
    return option
