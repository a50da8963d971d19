"""
Unit tests for the pricing engine (no database).
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from rebath.exceptions import NotFound, ValidationError
from rebath.services import pricing
from rebath.services.pricing import QuoteItem


def _option(option_id='faucet-1', base_price='150.00', installation_cost='50.00', is_active=True):
    return SimpleNamespace(
        id=option_id,
        name='Single-Handle Faucet',
        brand='Moen',
        model='Align 6190',
        size=None,
        material='Brass',
        color='Chrome',
        base_price=Decimal(base_price),
        installation_cost=Decimal(installation_cost),
        is_active=is_active,
    )


def _labor(name='Demolition', price='100', quantity=1):
    return QuoteItem.from_dict({'type': 'labor', 'name': name, 'unitPrice': price, 'quantity': quantity})


class TestLineTotal:
    """Tests for per-line totals."""

    def test_fixture_includes_installation(self):
        item = pricing.item_from_option(_option())
        assert item.unit_price == Decimal('150.00')
        assert item.installation_cost == Decimal('50.00')
        assert pricing.line_total(item) == Decimal('200.00')

    def test_labor_has_no_installation(self):
        item = QuoteItem.from_dict({
            'type': 'labor', 'name': 'Tile work', 'unitPrice': 80, 'quantity': 3, 'installationCost': 500,
        })
        assert item.installation_cost is None
        assert pricing.line_total(item) == Decimal('240')

    def test_client_total_is_ignored(self):
        item = QuoteItem.from_dict({'name': 'Vanity', 'unitPrice': 200, 'quantity': 2, 'totalPrice': 1})
        assert item.total_price == Decimal('400')


class TestComputeTotals:
    """Tests for subtotal / discount / tax / total."""

    def test_discount_then_tax(self):
        items = [QuoteItem.from_dict({'name': 'Faucet', 'quantity': 2, 'unitPrice': 150, 'installationCost': 50})]

        totals = pricing.compute_totals(items, Decimal('0.08'), Decimal('0.10'))

        assert totals.subtotal == Decimal('400.00')
        assert totals.discount_amount == Decimal('40.00')
        assert totals.tax_amount == Decimal('28.80')
        assert totals.total == Decimal('388.80')

    def test_empty_items_are_all_zero(self):
        totals = pricing.compute_totals([], Decimal('0.08'), Decimal('0.10'))
        assert totals.subtotal == totals.discount_amount == totals.tax_amount == totals.total == Decimal('0')

    def test_total_matches_rounded_parts(self):
        items = [
            QuoteItem.from_dict({'name': 'Grab bar', 'unitPrice': '33.33', 'quantity': 3}),
            _labor('Caulking', '19.99', 1),
        ]

        totals = pricing.compute_totals(items, '0.0825', '0.15')

        assert totals.total == totals.subtotal - totals.discount_amount + totals.tax_amount
        assert totals.tax_amount == totals.tax_amount.quantize(Decimal('0.01'))

    def test_deterministic(self):
        items = [_labor('Plumbing', '245.50', 2)]
        assert pricing.compute_totals(items, '0.085', '0.05') == pricing.compute_totals(items, '0.085', '0.05')

    def test_to_dict_uses_floats(self):
        totals = pricing.compute_totals([_labor('Plumbing', '100')], '0.08', '0')
        assert totals.to_dict() == {'subtotal': 100.0, 'discount_amount': 0.0, 'tax_amount': 8.0, 'total': 108.0}

    @pytest.mark.parametrize('tax_rate, discount', [
        ('-0.01', '0'),
        ('0.08', '1.5'),
        ('0.08', '-0.1'),
        ('abc', '0'),
    ])
    def test_invalid_rates_rejected(self, tax_rate, discount):
        with pytest.raises(ValidationError):
            pricing.compute_totals([], tax_rate, discount)

    def test_percent_to_fraction(self):
        assert pricing.percent_to_fraction('8') == Decimal('0.08')
        assert pricing.percent_to_fraction(12.5) == Decimal('0.125')


class TestItemListEdits:
    """Tests for add / merge / quantity / price edits."""

    def test_add_new_fixture(self):
        items = pricing.add_or_merge_item([], _option())

        assert len(items) == 1
        assert items[0].quantity == 1
        assert items[0].fixture_id == 'faucet-1'
        assert items[0].total_price == Decimal('200.00')

    def test_same_fixture_merges(self):
        option = _option()
        items = pricing.add_or_merge_item([], option)
        items = pricing.add_or_merge_item(items, option)

        assert len(items) == 1
        assert items[0].quantity == 2
        assert items[0].total_price == Decimal('400.00')

    def test_input_not_mutated(self):
        option = _option()
        original = pricing.add_or_merge_item([], option)
        pricing.add_or_merge_item(original, option)
        assert original[0].quantity == 1

    def test_inactive_option_rejected(self):
        with pytest.raises(ValidationError):
            pricing.add_or_merge_item([], _option(is_active=False))

    def test_labor_never_merges(self):
        items = pricing.add_labor_item([], 'Demolition', 100)
        items = pricing.add_labor_item(items, 'Demolition', 100)

        assert len(items) == 2
        assert all(item.type == 'labor' for item in items)

    def test_set_quantity_recomputes(self):
        items = pricing.add_or_merge_item([], _option())
        items = pricing.set_quantity(items, items[0].id, 3)

        assert items[0].quantity == 3
        assert items[0].total_price == Decimal('600.00')

    def test_decrement_to_zero_removes(self):
        option = _option()
        items = pricing.add_or_merge_item([], option)
        item_id = items[0].id

        items = pricing.set_quantity(items, item_id, 0)

        assert items == []

    def test_negative_quantity_removes(self):
        items = pricing.add_labor_item([], 'Haul away', 75)
        assert pricing.set_quantity(items, items[0].id, -2) == []

    def test_unknown_item(self):
        with pytest.raises(NotFound):
            pricing.set_quantity([], 'missing', 2)

    def test_set_unit_price(self):
        items = pricing.add_labor_item([], 'Painting', 100, quantity=2)
        items = pricing.set_unit_price(items, items[0].id, '120')

        assert items[0].unit_price == Decimal('120')
        assert items[0].total_price == Decimal('240')

    def test_negative_unit_price_rejected(self):
        items = pricing.add_labor_item([], 'Painting', 100)
        with pytest.raises(ValidationError):
            pricing.set_unit_price(items, items[0].id, '-1')

    def test_fractional_quantity_rejected(self):
        with pytest.raises(ValidationError):
            QuoteItem.from_dict({'name': 'Tile', 'unitPrice': 10, 'quantity': 1.5})


class TestNormalizeItems:
    """Tests for parsing client item JSON."""

    def test_snake_case_keys(self):
        items = pricing.normalize_items([
            {'type': 'fixture', 'name': 'Toilet', 'unit_price': '300', 'installation_cost': '120', 'quantity': 1},
        ])
        assert items[0].total_price == Decimal('420')

    def test_missing_name_rejected(self):
        with pytest.raises(ValidationError):
            pricing.normalize_items([{'unitPrice': 10}])

    def test_non_text_name_rejected(self):
        with pytest.raises(ValidationError):
            pricing.normalize_items([{'type': 'labor', 'name': 123, 'unitPrice': 10}])

    @pytest.mark.parametrize('field', ['fixtureId', 'brand', 'model', 'notes'])
    def test_non_text_detail_rejected(self, field):
        with pytest.raises(ValidationError):
            pricing.normalize_items([{'name': 'Toilet', 'unitPrice': 300, field: {'x': 1}}])

    def test_labor_description_must_be_text(self):
        with pytest.raises(ValidationError):
            pricing.normalize_items([{'type': 'labor', 'name': 'Demo', 'unitPrice': 10, 'description': [1]}])

    def test_detail_text_is_stripped(self):
        item = pricing.normalize_items([{'name': '  Toilet ', 'unitPrice': 300, 'brand': ' Kohler '}])[0]
        assert item.name == 'Toilet'
        assert item.brand == 'Kohler'

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            pricing.normalize_items({'name': 'Toilet'})

    def test_normalize_is_idempotent(self):
        raw = [
            {'name': 'Vanity', 'unitPrice': 599, 'installationCost': 300, 'quantity': 1},
            {'type': 'labor', 'name': 'Demolition', 'unitPrice': 450},
        ]
        once = pricing.normalize_items(raw)
        twice = pricing.normalize_items([item.to_dict() for item in once])
        assert once == twice

    def test_stored_shape(self):
        item = pricing.item_from_option(_option())
        data = item.to_dict()

        assert data['fixtureId'] == 'faucet-1'
        assert data['unitPrice'] == 150.0
        assert data['installationCost'] == 50.0
        assert data['totalPrice'] == 200.0
        assert 'description' not in data

        labor = _labor().to_dict()
        assert 'installationCost' not in labor
        assert 'fixtureId' not in labor
