"""Quotes blueprint: price calculator, quote CRUD, lifecycle and PDF export."""
from flask import Blueprint, g, request, send_file

from rebath.blueprints import json_body, success
from rebath.blueprints.metrics import quote_pdfs_generated_total, quote_transitions_total, quotes_created_total
from rebath.database import get_session
from rebath.exceptions import ValidationError
from rebath.middleware import require_login
from rebath.services import catalog_service, pricing, quote_service
from rebath.services.pdf_service import quote_pdf_filename

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')


def _rates(data, percent=False):
    """Read tax/discount from a payload; calculator input is in percent."""
    tax_rate = data.get('tax_rate')
    discount = data.get('discount_percentage')
    if percent:
        tax_rate = pricing.percent_to_fraction(tax_rate) if tax_rate not in (None, '') else None
        discount = pricing.percent_to_fraction(discount) if discount not in (None, '') else None
    return tax_rate, discount


def _object(data, key):
    value = data.get(key)
    if value is not None and not isinstance(value, dict):
        raise ValidationError(f'{key} must be an object')
    return value


@quotes_bp.route('/calculate', methods=['POST'])
@require_login
def calculate():
    """
    Price a draft item list without saving anything.

    Body:
        items: current lines
        tax_rate, discount_percentage: fractions, or percents with "percent": true
        add_option_id: add one unit of a catalog fixture (merges by fixture)
        add_labor: {name, unit_price, quantity?, description?}
        set_quantity: {item_id, quantity} (0 removes the line)
        set_unit_price: {item_id, unit_price}
    """
    data = json_body()
    items = pricing.normalize_items(data.get('items') or [])

    if data.get('add_option_id'):
        option = catalog_service.get_option(get_session(), data['add_option_id'])
        items = pricing.add_or_merge_item(items, option)

    labor = _object(data, 'add_labor')
    if labor:
        items = pricing.add_labor_item(
            items,
            labor.get('name'),
            labor.get('unit_price'),
            quantity=labor.get('quantity', 1),
            description=labor.get('description'),
        )

    change = _object(data, 'set_quantity')
    if change:
        items = pricing.set_quantity(items, change.get('item_id'), change.get('quantity'))

    change = _object(data, 'set_unit_price')
    if change:
        items = pricing.set_unit_price(items, change.get('item_id'), change.get('unit_price'))

    tax_rate, discount = _rates(data, percent=data.get('percent') is True)
    totals = pricing.compute_totals(
        items,
        quote_service.default_tax_rate() if tax_rate is None else tax_rate,
        0 if discount is None else discount,
    )
    return success({'items': [item.to_dict() for item in items], 'totals': totals.to_dict()})


@quotes_bp.route('', methods=['GET'])
@require_login
def list_quotes():
    quotes = quote_service.list_quotes(get_session(), g.user, status=request.args.get('status') or None)
    return success([q.to_dict() for q in quotes])


@quotes_bp.route('', methods=['POST'])
@require_login
def create_quote():
    data = json_body()
    tax_rate, discount = _rates(data, percent=data.get('percent') is True)
    quote = quote_service.create_quote(
        get_session(),
        g.user,
        data.get('project_id'),
        data.get('items'),
        assessment_id=data.get('assessment_id'),
        tax_rate=tax_rate,
        discount_percentage=0 if discount is None else discount,
        notes=data.get('notes'),
    )
    quotes_created_total.inc()
    return success(quote.to_dict(), 201)


@quotes_bp.route('/stats', methods=['GET'])
@require_login
def quote_stats():
    return success(quote_service.quote_stats(get_session(), g.user))


@quotes_bp.route('/<quote_id>', methods=['GET'])
@require_login
def get_quote(quote_id):
    quote = quote_service.get_quote(get_session(), g.user, quote_id)
    return success(quote.to_dict())


@quotes_bp.route('/<quote_id>', methods=['PATCH'])
@require_login
def update_quote(quote_id):
    """Drafts only. Omitted fields are left unchanged."""
    data = json_body()
    tax_rate, discount = _rates(data, percent=data.get('percent') is True)
    quote = quote_service.update_quote(
        get_session(),
        g.user,
        quote_id,
        items=data.get('items'),
        tax_rate=tax_rate,
        discount_percentage=discount,
        notes=data.get('notes'),
        valid_until=data.get('valid_until'),
    )
    return success(quote.to_dict())


@quotes_bp.route('/<quote_id>', methods=['DELETE'])
@require_login
def delete_quote(quote_id):
    quote_service.delete_quote(get_session(), g.user, quote_id)
    return success()


@quotes_bp.route('/<quote_id>/send', methods=['POST'])
@require_login
def send_quote(quote_id):
    quote = quote_service.send_quote(get_session(), g.user, quote_id)
    quote_transitions_total.labels(status=quote.status).inc()
    return success(quote.to_dict())


@quotes_bp.route('/<quote_id>/accept', methods=['POST'])
@require_login
def accept_quote(quote_id):
    quote = quote_service.accept_quote(get_session(), g.user, quote_id)
    quote_transitions_total.labels(status=quote.status).inc()
    return success(quote.to_dict())


@quotes_bp.route('/<quote_id>/reject', methods=['POST'])
@require_login
def reject_quote(quote_id):
    quote = quote_service.reject_quote(get_session(), g.user, quote_id)
    quote_transitions_total.labels(status=quote.status).inc()
    return success(quote.to_dict())


@quotes_bp.route('/<quote_id>/pdf', methods=['GET'])
@require_login
def quote_pdf(quote_id):
    quote, project, buffer = quote_service.render_quote_pdf(get_session(), g.user, quote_id)
    quote_pdfs_generated_total.inc()
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=request.args.get('inline') != '1',
        download_name=quote_pdf_filename(quote, project),
    )


@quotes_bp.route('/<quote_id>/email', methods=['POST'])
@require_login
def email_quote(quote_id):
    data = json_body()
    result = quote_service.email_quote(get_session(), g.user, quote_id, recipient=data.get('recipient'))
    quote_pdfs_generated_total.inc()
    return success(result)
