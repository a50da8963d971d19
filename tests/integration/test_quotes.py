"""
Integration tests for the quote lifecycle.
"""

import pytest
import re
from datetime import date, timedelta
from decimal import Decimal

from rebath.exceptions import Forbidden, NotFound, Unauthenticated, Unknown, ValidationError
from rebath.models import Assessment, Quote
from rebath.services import quote_service, sharing_service
from rebath.services.email_service import mail


@pytest.fixture
def draft(session, owner, project, make_fixture_item):
    """Draft quote: one $200 vanity x2, 10% discount, 8% tax."""
    return quote_service.create_quote(
        session, owner, project.id,
        [make_fixture_item(unit_price=200, quantity=2)],
        tax_rate='0.08',
        discount_percentage='0.10',
        today=date(2025, 1, 5),
    )


class TestQuoteNumbers:

    def test_format(self, session):
        number = quote_service.generate_quote_number(session, date(2025, 1, 5))
        assert re.fullmatch(r'Q-20250105-\d{3}', number)

    def test_collision_is_retried(self, session, draft, monkeypatch):
        taken = draft.quote_number
        suffixes = iter([int(taken[-3:]), (int(taken[-3:]) + 1) % 1000])
        monkeypatch.setattr(quote_service.random, 'randint', lambda a, b: next(suffixes))

        number = quote_service.generate_quote_number(session, date(2025, 1, 5))

        assert number != taken
        assert number.startswith('Q-20250105-')

    def test_gives_up_after_retries(self, session, draft, monkeypatch):
        taken = int(draft.quote_number[-3:])
        monkeypatch.setattr(quote_service.random, 'randint', lambda a, b: taken)

        with pytest.raises(Unknown):
            quote_service.generate_quote_number(session, date(2025, 1, 5))


class TestCreateQuote:

    def test_totals_persisted(self, session, draft):
        quote = session.query(Quote).filter_by(id=draft.id).one()

        assert quote.status == 'draft'
        assert quote.subtotal == Decimal('400.00')
        assert quote.discount_amount == Decimal('40.00')
        assert quote.tax_amount == Decimal('28.80')
        assert quote.total == Decimal('388.80')
        assert quote.valid_until == date(2025, 2, 4)
        assert quote.items[0]['totalPrice'] == 400.0

    def test_default_tax_rate_from_config(self, session, owner, project, make_labor_item):
        quote = quote_service.create_quote(session, owner, project.id, [make_labor_item(unit_price=100)])
        assert quote.tax_rate == Decimal('0.08')
        assert quote.total == Decimal('108.00')

    def test_empty_items_rejected(self, session, owner, project):
        with pytest.raises(ValidationError):
            quote_service.create_quote(session, owner, project.id, [])
        assert session.query(Quote).count() == 0

    def test_requires_user(self, session, project, make_labor_item):
        with pytest.raises(Unauthenticated):
            quote_service.create_quote(session, None, project.id, [make_labor_item()])

    def test_unknown_project(self, session, owner, make_labor_item):
        with pytest.raises(NotFound):
            quote_service.create_quote(session, owner, 'no-such-project', [make_labor_item()])

    def test_stranger_cannot_quote(self, session, other, project, make_labor_item):
        with pytest.raises(Forbidden):
            quote_service.create_quote(session, other, project.id, [make_labor_item()])

    def test_view_grant_cannot_quote(self, session, owner, other, project, make_labor_item):
        sharing_service.share_project(session, owner, project.id, other.id, 'view')
        with pytest.raises(Forbidden):
            quote_service.create_quote(session, other, project.id, [make_labor_item()])

    def test_edit_grant_can_quote(self, session, owner, other, project, make_labor_item):
        sharing_service.share_project(session, owner, project.id, other.id, 'edit')
        quote = quote_service.create_quote(session, other, project.id, [make_labor_item()])
        assert quote.user_id == other.id

    def test_assessment_must_belong_to_project(self, session, owner, project, make_labor_item):
        from rebath.models import Project
        elsewhere = Project(user_id=owner.id, client_name='Bo', address='9 Oak Ave')
        session.add(elsewhere)
        session.flush()
        assessment = Assessment(project_id=elsewhere.id, user_id=owner.id, room_type='master_bathroom',
                                room_name='Main bath', fixtures=[], measurements={}, photos=[])
        session.add(assessment)
        session.commit()

        with pytest.raises(ValidationError):
            quote_service.create_quote(session, owner, project.id, [make_labor_item()],
                                       assessment_id=assessment.id)


class TestUpdateQuote:

    def test_recomputes_on_item_change(self, session, owner, draft, make_labor_item):
        quote = quote_service.update_quote(session, owner, draft.id, items=[make_labor_item(unit_price=1000)])

        assert quote.subtotal == Decimal('1000.00')
        assert quote.discount_amount == Decimal('100.00')
        assert quote.tax_amount == Decimal('72.00')
        assert quote.total == Decimal('972.00')

    def test_recomputes_on_rate_change(self, session, owner, draft):
        quote = quote_service.update_quote(session, owner, draft.id, discount_percentage='0')

        assert quote.discount_amount == Decimal('0.00')
        assert quote.tax_amount == Decimal('32.00')
        assert quote.total == Decimal('432.00')

    def test_sent_quote_is_frozen(self, session, owner, draft, make_labor_item):
        quote_service.send_quote(session, owner, draft.id, today=date(2025, 1, 6))

        with pytest.raises(ValidationError):
            quote_service.update_quote(session, owner, draft.id, items=[make_labor_item()])

    def test_empty_items_rejected(self, session, owner, draft):
        with pytest.raises(ValidationError):
            quote_service.update_quote(session, owner, draft.id, items=[])

    def test_valid_until(self, session, owner, draft):
        quote = quote_service.update_quote(session, owner, draft.id, valid_until='2025-03-01')
        assert quote.valid_until == date(2025, 3, 1)


class TestQuoteLifecycle:

    def test_send_then_accept(self, session, owner, draft):
        today = date(2025, 1, 10)
        assert quote_service.send_quote(session, owner, draft.id, today=today).status == 'sent'
        assert quote_service.accept_quote(session, owner, draft.id, today=today).status == 'accepted'

    def test_send_then_reject(self, session, owner, draft):
        today = date(2025, 1, 10)
        quote_service.send_quote(session, owner, draft.id, today=today)
        assert quote_service.reject_quote(session, owner, draft.id, today=today).status == 'rejected'

    def test_cannot_accept_draft(self, session, owner, draft):
        with pytest.raises(ValidationError):
            quote_service.accept_quote(session, owner, draft.id, today=date(2025, 1, 10))
        assert session.query(Quote).filter_by(id=draft.id).one().status == 'draft'

    def test_no_backward_transition(self, session, owner, draft):
        today = date(2025, 1, 10)
        quote_service.send_quote(session, owner, draft.id, today=today)
        quote_service.accept_quote(session, owner, draft.id, today=today)

        with pytest.raises(ValidationError):
            quote_service.send_quote(session, owner, draft.id, today=today)
        with pytest.raises(ValidationError):
            quote_service.reject_quote(session, owner, draft.id, today=today)

    def test_cannot_send_twice(self, session, owner, draft):
        today = date(2025, 1, 10)
        quote_service.send_quote(session, owner, draft.id, today=today)

        with pytest.raises(ValidationError):
            quote_service.send_quote(session, owner, draft.id, today=today)
        assert session.query(Quote).filter_by(id=draft.id).one().status == 'sent'


    def test_expired_is_derived_not_stored(self, session, owner, draft):
        late = draft.valid_until + timedelta(days=1)

        assert quote_service.effective_status(draft, late) == 'expired'
        assert session.query(Quote).filter_by(id=draft.id).one().status == 'draft'

    def test_expired_quote_cannot_be_sent(self, session, owner, draft):
        late = draft.valid_until + timedelta(days=1)
        with pytest.raises(ValidationError):
            quote_service.send_quote(session, owner, draft.id, today=late)

    def test_view_grant_cannot_transition(self, session, owner, other, draft):
        sharing_service.share_project(session, owner, draft.project_id, other.id, 'view')
        with pytest.raises(Forbidden):
            quote_service.send_quote(session, other, draft.id, today=date(2025, 1, 10))


class TestDeleteAndList:

    def test_delete_draft(self, session, owner, draft):
        quote_service.delete_quote(session, owner, draft.id)
        assert session.query(Quote).count() == 0

    def test_cannot_delete_sent(self, session, owner, draft):
        quote_service.send_quote(session, owner, draft.id, today=date(2025, 1, 10))
        with pytest.raises(ValidationError):
            quote_service.delete_quote(session, owner, draft.id)

    def test_list_only_accessible(self, session, owner, other, admin, draft):
        assert [q.id for q in quote_service.list_quotes(session, owner)] == [draft.id]
        assert quote_service.list_quotes(session, other) == []
        assert [q.id for q in quote_service.list_quotes(session, admin)] == [draft.id]

        sharing_service.share_project(session, owner, draft.project_id, other.id, 'view')
        assert [q.id for q in quote_service.list_quotes(session, other)] == [draft.id]

    def test_stranger_cannot_read(self, session, other, draft):
        with pytest.raises(Forbidden):
            quote_service.get_quote(session, other, draft.id)

    def test_stats(self, session, owner, draft):
        stats = quote_service.quote_stats(session, owner)

        assert stats['total_quotes'] == 1
        assert stats['total_value'] == 388.8
        assert stats['average_value'] == 388.8


class TestQuoteDelivery:

    def test_render_pdf(self, session, owner, draft):
        quote, project, buffer = quote_service.render_quote_pdf(session, owner, draft.id)
        assert quote.id == draft.id
        assert buffer.getvalue().startswith(b'%PDF')

    def test_email_quote_attaches_pdf(self, app, session, owner, draft):
        with mail.record_messages() as outbox:
            result = quote_service.email_quote(session, owner, draft.id)

        assert result == {'recipient': 'jane@example.com', 'sent': True}
        assert len(outbox) == 1
        assert outbox[0].recipients == ['jane@example.com']
        assert outbox[0].attachments[0].filename.startswith(f'Quote-{draft.quote_number}')
        assert session.query(Quote).filter_by(id=draft.id).one().status == 'draft'

    def test_email_escapes_client_text(self, app, session, owner, project, draft):
        project.client_name = '<b>Jane</b> & Co'
        project.address = '12 <Elm> Street'
        session.commit()

        with mail.record_messages() as outbox:
            quote_service.email_quote(session, owner, draft.id)

        html = outbox[0].html
        assert '&lt;b&gt;Jane&lt;/b&gt; &amp; Co' in html
        assert '12 &lt;Elm&gt; Street' in html
        assert '<b>Jane</b>' not in html
        assert '<b>Jane</b> & Co' in outbox[0].body


    def test_email_needs_recipient(self, session, owner, project, draft):
        project.client_email = None
        session.commit()
        with pytest.raises(ValidationError):
            quote_service.email_quote(session, owner, draft.id)
