"""
Quote service: numbering, pricing persistence and the quote lifecycle.

Lifecycle: draft -> sent -> accepted | rejected. ``expired`` is never stored;
it is derived on read from ``valid_until``. Only drafts can be edited or
deleted.
"""
import logging
import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import current_app

from rebath.exceptions import NotFound, Unknown, ValidationError, translate_db_errors
from rebath.models import Assessment, Project, Quote, QuoteStatus
from rebath.services.email_service import send_quote_email
from rebath.services.pdf_service import generate_quote_pdf, quote_pdf_filename
from rebath.services.pricing import compute_totals, normalize_items, validate_rates
from rebath.services.project_service import accessible_project_filter, get_editable_project, get_readable_project
from rebath.services.sharing_service import require_user
from rebath.utils.formatters import parse_date, parse_text

logger = logging.getLogger(__name__)

QUOTE_NUMBER_ATTEMPTS = 10
DEFAULT_VALID_DAYS = 30

# Allowed stored-status transitions
TRANSITIONS = {
    QuoteStatus.DRAFT.value: (QuoteStatus.SENT.value,),
    QuoteStatus.SENT.value: (QuoteStatus.ACCEPTED.value, QuoteStatus.REJECTED.value),
}


def _config(key, default):
    try:
        return current_app.config.get(key, default)
    except RuntimeError:
        # Outside an application context (scripts, unit tests)
        return default


def default_tax_rate() -> Decimal:
    return Decimal(str(_config('DEFAULT_TAX_RATE', '0')))


def effective_status(quote: Quote, today: Optional[date] = None) -> str:
    return quote.effective_status(today)


@translate_db_errors
def generate_quote_number(session, today: Optional[date] = None) -> str:
    """``Q-YYYYMMDD-NNN``, checked against existing numbers before use."""
    stamp = (today or date.today()).strftime('%Y%m%d')
    for _ in range(QUOTE_NUMBER_ATTEMPTS):
        candidate = f"Q-{stamp}-{random.randint(0, 999):03d}"
        exists = session.query(Quote.id).filter(Quote.quote_number == candidate).first()
        if not exists:
            return candidate

    logger.error(f"Could not allocate a quote number for {stamp} after {QUOTE_NUMBER_ATTEMPTS} attempts")
    raise Unknown('Could not generate a unique quote number')


def _apply_totals(quote: Quote, items) -> None:
    """Write items and the four derived amounts together."""
    totals = compute_totals(items, quote.tax_rate, quote.discount_percentage)
    quote.items = [item.to_dict() for item in items]
    quote.subtotal = totals.subtotal
    quote.discount_amount = totals.discount_amount
    quote.tax_amount = totals.tax_amount
    quote.total = totals.total


def _check_assessment(session, project: Project, assessment_id: Optional[str]) -> Optional[str]:
    if not assessment_id:
        return None
    assessment = session.query(Assessment).filter(Assessment.id == assessment_id).first()
    if not assessment:
        raise NotFound(f'Assessment {assessment_id} not found')
    if assessment.project_id != project.id:
        raise ValidationError('Assessment does not belong to this project')
    return assessment.id


@translate_db_errors
def create_quote(session, user, project_id: str, items: Any, assessment_id: Optional[str] = None,
                 tax_rate: Any = None, discount_percentage: Any = 0, notes: Optional[str] = None,
                 today: Optional[date] = None) -> Quote:
    """Create a draft quote valid for ``QUOTE_VALID_DAYS`` days."""
    require_user(user)
    project = get_editable_project(session, user, project_id)

    line_items = normalize_items(items)
    if not line_items:
        raise ValidationError('A quote needs at least one item')

    if tax_rate is None:
        tax_rate = default_tax_rate()
    tax_rate, discount_percentage = validate_rates(tax_rate, discount_percentage)

    today = today or date.today()
    valid_days = int(_config('QUOTE_VALID_DAYS', DEFAULT_VALID_DAYS))

    quote = Quote(
        project_id=project.id,
        user_id=user.id,
        assessment_id=_check_assessment(session, project, assessment_id),
        quote_number=generate_quote_number(session, today),
        tax_rate=tax_rate,
        discount_percentage=discount_percentage,
        valid_until=today + timedelta(days=valid_days),
        status=QuoteStatus.DRAFT.value,
        notes=parse_text(notes, 'notes'),
    )
    _apply_totals(quote, line_items)

    session.add(quote)
    session.commit()
    logger.info(f"Quote {quote.quote_number} created for project {project.id} by {user.email} (total {quote.total})")
    return quote


@translate_db_errors
def get_quote(session, user, quote_id: str) -> Quote:
    require_user(user)
    quote = session.query(Quote).filter(Quote.id == quote_id).first()
    if not quote:
        raise NotFound(f'Quote {quote_id} not found')
    get_readable_project(session, user, quote.project_id)
    return quote


def _get_editable_quote(session, user, quote_id: str) -> Quote:
    quote = get_quote(session, user, quote_id)
    get_editable_project(session, user, quote.project_id)
    return quote


@translate_db_errors
def list_quotes(session, user, status: Optional[str] = None) -> List[Quote]:
    """Quotes on every project the user can read, newest first."""
    require_user(user)
    query = session.query(Quote).join(Project, Quote.project_id == Project.id)
    criterion = accessible_project_filter(user)
    if criterion is not None:
        query = query.filter(criterion)
    quotes = query.order_by(
        Quote.created_at.desc(), Quote.quote_number.desc()
    ).all()
    if status:
        quotes = [q for q in quotes if q.effective_status() == status]
    return quotes


@translate_db_errors
def list_project_quotes(session, user, project_id: str) -> List[Quote]:
    project = get_readable_project(session, user, project_id)
    return session.query(Quote).filter(Quote.project_id == project.id).order_by(
        Quote.created_at.desc(), Quote.quote_number.desc()
    ).all()


@translate_db_errors
def update_quote(session, user, quote_id: str, items: Any = None, tax_rate: Any = None,
                 discount_percentage: Any = None, notes: Optional[str] = None,
                 valid_until: Any = None) -> Quote:
    """
    Edit a draft quote. Totals are recomputed whenever items or rates change.

    No version check: concurrent editors overwrite each other.
    """
    quote = _get_editable_quote(session, user, quote_id)
    if not quote.is_editable:
        raise ValidationError(f'Only draft quotes can be edited (quote is {quote.status})')

    if tax_rate is not None or discount_percentage is not None:
        quote.tax_rate, quote.discount_percentage = validate_rates(
            quote.tax_rate if tax_rate is None else tax_rate,
            quote.discount_percentage if discount_percentage is None else discount_percentage,
        )

    if items is not None:
        line_items = normalize_items(items)
        if not line_items:
            raise ValidationError('A quote needs at least one item')
    else:
        line_items = quote.line_items

    _apply_totals(quote, line_items)

    if notes is not None:
        quote.notes = parse_text(notes, 'notes')
    if valid_until is not None:
        new_date = parse_date(valid_until, 'valid_until')
        if new_date is None:
            raise ValidationError('valid_until cannot be empty')
        quote.valid_until = new_date

    session.commit()
    logger.info(f"Quote {quote.quote_number} updated by {user.email} (total {quote.total})")
    return quote


def _transition(session, user, quote_id: str, target: str, today: Optional[date] = None) -> Quote:
    quote = _get_editable_quote(session, user, quote_id)
    today = today or date.today()

    if target not in TRANSITIONS.get(quote.status, ()):
        raise ValidationError(f'Invalid transition: {quote.status} -> {target}')
    if target in (QuoteStatus.SENT.value, QuoteStatus.ACCEPTED.value) and quote.is_expired_on(today):
        raise ValidationError(f'Quote {quote.quote_number} expired on {quote.valid_until.isoformat()}')

    previous = quote.status
    quote.status = target
    session.commit()
    logger.info(f"Quote {quote.quote_number} {previous} -> {target} by {user.email}")
    return quote


@translate_db_errors
def send_quote(session, user, quote_id: str, today: Optional[date] = None) -> Quote:
    return _transition(session, user, quote_id, QuoteStatus.SENT.value, today)


@translate_db_errors
def accept_quote(session, user, quote_id: str, today: Optional[date] = None) -> Quote:
    return _transition(session, user, quote_id, QuoteStatus.ACCEPTED.value, today)


@translate_db_errors
def reject_quote(session, user, quote_id: str, today: Optional[date] = None) -> Quote:
    return _transition(session, user, quote_id, QuoteStatus.REJECTED.value, today)


@translate_db_errors
def delete_quote(session, user, quote_id: str) -> None:
    quote = _get_editable_quote(session, user, quote_id)
    if not quote.is_editable:
        raise ValidationError('Only draft quotes can be deleted')

    number = quote.quote_number
    session.delete(quote)
    session.commit()
    logger.info(f"Quote {number} deleted by {user.email}")


@translate_db_errors
def quote_stats(session, user) -> Dict[str, Any]:
    quotes = list_quotes(session, user)
    total_value = sum((q.total for q in quotes), Decimal('0'))

    by_status = {s.value: 0 for s in QuoteStatus}
    for quote in quotes:
        by_status[quote.effective_status()] += 1

    return {
        'total_quotes': len(quotes),
        'total_value': float(total_value),
        'average_value': float(total_value / len(quotes)) if quotes else 0.0,
        'by_status': by_status,
    }


def business_info() -> Dict[str, Any]:
    """Letterhead used on the PDF and in the quote email."""
    return {
        'name': _config('BUSINESS_NAME', 'ReBath Pro'),
        'address': _config('BUSINESS_ADDRESS', None),
        'phone': _config('BUSINESS_PHONE', None),
        'email': _config('BUSINESS_EMAIL', None),
    }


@translate_db_errors
def render_quote_pdf(session, user, quote_id: str):
    """Returns ``(quote, project, buffer)`` for a quote the user can read."""
    quote = get_quote(session, user, quote_id)
    project = quote.project
    return quote, project, generate_quote_pdf(quote, project, business_info())


@translate_db_errors
def email_quote(session, user, quote_id: str, recipient: Optional[str] = None) -> Dict[str, Any]:
    """
    Mail the quote PDF to the client (or ``recipient``). Status is not
    changed; sending is a separate transition.
    """
    quote, project, buffer = render_quote_pdf(session, user, quote_id)
    to_address = parse_text(recipient, 'recipient') or project.client_email
    if not to_address:
        raise ValidationError('The project has no client email; provide a recipient')

    sent = send_quote_email(
        to_address,
        quote,
        project,
        business_info(),
        attachment=(quote_pdf_filename(quote, project), buffer.getvalue()),
    )
    if sent:
        logger.info(f"Quote {quote.quote_number} emailed to {to_address} by {user.email}")
    return {'recipient': to_address, 'sent': sent}
