"""
Pricing engine: line totals, quote totals and item-list edits.

Everything in this module is pure (no session, no Flask). Rates are
fractions: 0.08 means 8%. Calculator-style input ("8") is converted with
``percent_to_fraction`` once, at the request boundary, never in here.

Item-list helpers never mutate their input; they return a new list.
"""
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from rebath.exceptions import NotFound, ValidationError
from rebath.utils.formatters import parse_text

CENT = Decimal('0.01')
ZERO = Decimal('0')

ITEM_TYPE_FIXTURE = 'fixture'
ITEM_TYPE_LABOR = 'labor'
ITEM_TYPES = (ITEM_TYPE_FIXTURE, ITEM_TYPE_LABOR)


def to_decimal(value: Any, field_name: str = 'value') -> Decimal:
    """Parse a number coming from JSON/forms into a finite Decimal."""
    if isinstance(value, Decimal):
        result = value
    elif value is None or isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a number')
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f'{field_name} must be a number')
    if not result.is_finite():
        raise ValidationError(f'{field_name} must be a number')
    return result


def to_quantity(value: Any) -> int:
    """Quantities are whole units."""
    qty = to_decimal(value, 'quantity')
    if qty != qty.to_integral_value():
        raise ValidationError('quantity must be a whole number')
    return int(qty)


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_to_fraction(value: Any) -> Decimal:
    """'8' or 8 (percent, as typed in the calculator) -> Decimal('0.08')."""
    return to_decimal(value, 'percentage') / Decimal('100')


@dataclass(frozen=True)
class QuoteItem:
    """
    One line of a quote.

    Fixture lines snapshot the catalog fields (brand, model, size, material,
    color, installation cost) at selection time; labor lines carry a free
    text description and no installation cost.
    """
    id: str
    type: str
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal = ZERO
    fixture_id: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    color: Optional[str] = None
    installation_cost: Optional[Decimal] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_fixture(self) -> bool:
        return self.type == ITEM_TYPE_FIXTURE

    def recomputed(self) -> 'QuoteItem':
        return replace(self, total_price=line_total(self))

    def with_quantity(self, quantity: int) -> 'QuoteItem':
        return replace(self, quantity=quantity).recomputed()

    def with_unit_price(self, unit_price: Decimal) -> 'QuoteItem':
        return replace(self, unit_price=unit_price).recomputed()

    def to_dict(self) -> Dict[str, Any]:
        """Row shape stored in ``quotes.items`` (camelCase, numbers as JSON numbers)."""
        data = {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'quantity': self.quantity,
            'unitPrice': float(self.unit_price),
            'totalPrice': float(self.total_price),
        }
        if self.is_fixture:
            data.update({
                'fixtureId': self.fixture_id,
                'brand': self.brand,
                'model': self.model,
                'size': self.size,
                'material': self.material,
                'color': self.color,
                'installationCost': float(self.installation_cost or ZERO),
            })
        else:
            data['description'] = self.description
        if self.notes:
            data['notes'] = self.notes
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'QuoteItem':
        """
        Build an item from stored or client JSON. Accepts camelCase or
        snake_case keys. A missing type means fixture. ``total_price`` is
        always recomputed; a client-sent total is ignored.
        """
        if not isinstance(raw, dict):
            raise ValidationError('Each item must be an object')

        def pick(camel, snake=None, default=None):
            if camel in raw:
                return raw[camel]
            if snake and snake in raw:
                return raw[snake]
            return default

        item_type = pick('type') or ITEM_TYPE_FIXTURE
        if item_type not in ITEM_TYPES:
            raise ValidationError(f'Unknown item type: {item_type}')

        name = parse_text(pick('name'), 'Item name', required=True)

        quantity = to_quantity(pick('quantity', default=1))
        if quantity < 1:
            raise ValidationError('quantity must be at least 1')

        unit_price = to_decimal(pick('unitPrice', 'unit_price', 0), 'unit price')
        if unit_price < 0:
            raise ValidationError('unit price cannot be negative')

        installation_cost = None
        if item_type == ITEM_TYPE_FIXTURE:
            installation_cost = to_decimal(pick('installationCost', 'installation_cost', 0), 'installation cost')
            if installation_cost < 0:
                raise ValidationError('installation cost cannot be negative')

        fixture = item_type == ITEM_TYPE_FIXTURE

        def text(camel, snake=None):
            return parse_text(pick(camel, snake), camel)

        item = cls(
            id=str(pick('id') or uuid.uuid4()),
            type=item_type,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            fixture_id=text('fixtureId', 'fixture_id') if fixture else None,
            brand=text('brand') if fixture else None,
            model=text('model') if fixture else None,
            size=text('size') if fixture else None,
            material=text('material') if fixture else None,
            color=text('color') if fixture else None,
            installation_cost=installation_cost,
            description=text('description') if not fixture else None,
            notes=text('notes'),
        )
        return item.recomputed()


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, float]:
        return {
            'subtotal': float(self.subtotal),
            'discount_amount': float(self.discount_amount),
            'tax_amount': float(self.tax_amount),
            'total': float(self.total),
        }


def line_total(item: QuoteItem) -> Decimal:
    """quantity * (unit price + installation cost); labor has no installation cost."""
    unit = item.unit_price
    if item.is_fixture:
        unit = unit + (item.installation_cost or ZERO)
    return item.quantity * unit


def validate_rates(tax_rate: Any, discount_percentage: Any):
    tax_rate = to_decimal(tax_rate, 'tax_rate')
    discount_percentage = to_decimal(discount_percentage, 'discount_percentage')
    if tax_rate < 0:
        raise ValidationError('tax_rate cannot be negative')
    if discount_percentage < 0 or discount_percentage > 1:
        raise ValidationError('discount_percentage must be a fraction between 0 and 1')
    return tax_rate, discount_percentage


def compute_totals(items: Iterable[QuoteItem], tax_rate: Any = ZERO, discount_percentage: Any = ZERO) -> Totals:
    """
    Derive subtotal, discount, tax and total for a list of items.

    Discount applies to the subtotal and tax to the discounted amount. Each
    amount is rounded to cents and ``total`` is built from the rounded parts,
    so ``total == subtotal - discount_amount + tax_amount`` holds exactly.
    """
    tax_rate, discount_percentage = validate_rates(tax_rate, discount_percentage)

    subtotal = money(sum((line_total(item) for item in items), ZERO))
    discount_amount = money(subtotal * discount_percentage)
    tax_amount = money((subtotal - discount_amount) * tax_rate)
    total = subtotal - discount_amount + tax_amount

    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total=total,
    )


def item_from_option(option, quantity: int = 1) -> QuoteItem:
    """Snapshot a catalog ``FixtureOption`` into a fixture line."""
    return QuoteItem(
        id=str(uuid.uuid4()),
        type=ITEM_TYPE_FIXTURE,
        fixture_id=option.id,
        name=option.name,
        brand=option.brand,
        model=option.model,
        size=option.size,
        material=option.material,
        color=option.color,
        quantity=quantity,
        unit_price=to_decimal(option.base_price, 'base price'),
        installation_cost=to_decimal(option.installation_cost or ZERO, 'installation cost'),
    ).recomputed()


def add_or_merge_item(items: List[QuoteItem], option) -> List[QuoteItem]:
    """Add one unit of a fixture; an existing line for the same fixture is incremented."""
    if not getattr(option, 'is_active', True):
        raise ValidationError(f'Fixture "{option.name}" is no longer available')

    result = []
    merged = False
    for item in items:
        if not merged and item.is_fixture and item.fixture_id == option.id:
            item = item.with_quantity(item.quantity + 1)
            merged = True
        result.append(item)

    if not merged:
        result.append(item_from_option(option))
    return result


def add_labor_item(items: List[QuoteItem], name: str, unit_price: Any, quantity: Any = 1,
                   description: Optional[str] = None) -> List[QuoteItem]:
    """Append a labor line. Labor lines never merge, even with an identical name."""
    labor = QuoteItem.from_dict({
        'type': ITEM_TYPE_LABOR,
        'name': name,
        'unitPrice': unit_price,
        'quantity': quantity,
        'description': description,
    })
    return list(items) + [labor]


def set_quantity(items: List[QuoteItem], item_id: str, qty: Any) -> List[QuoteItem]:
    """Set a line's quantity. Zero or less removes the line."""
    qty = to_quantity(qty)
    _find(items, item_id)

    if qty <= 0:
        return [item for item in items if item.id != item_id]
    return [item.with_quantity(qty) if item.id == item_id else item for item in items]


def set_unit_price(items: List[QuoteItem], item_id: str, price: Any) -> List[QuoteItem]:
    price = to_decimal(price, 'unit price')
    if price < 0:
        raise ValidationError('unit price cannot be negative')
    _find(items, item_id)
    return [item.with_unit_price(price) if item.id == item_id else item for item in items]


def normalize_items(raw_items: Any) -> List[QuoteItem]:
    """Parse client JSON (or items) into validated lines with fresh totals."""
    if raw_items is None:
        return []
    if not isinstance(raw_items, (list, tuple)):
        raise ValidationError('items must be a list')
    return [
        raw.recomputed() if isinstance(raw, QuoteItem) else QuoteItem.from_dict(raw)
        for raw in raw_items
    ]


def _find(items: List[QuoteItem], item_id: str) -> QuoteItem:
    for item in items:
        if item.id == item_id:
            return item
    raise NotFound(f'Item {item_id} not found')
