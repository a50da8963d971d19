"""
Unit tests for SQLAlchemy models.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from rebath.models import Profile, Project, ProjectPermission, Quote, QuoteStatus


class TestProfileModel:
    """Tests for Profile model."""

    def test_password_hashing(self):
        profile = Profile(email='user@test.com')
        profile.set_password('mypassword')

        assert profile.password_hash != 'mypassword'
        assert profile.check_password('mypassword') is True
        assert profile.check_password('wrongpassword') is False

    def test_no_password_never_matches(self):
        assert Profile(email='sso@test.com').check_password('') is False

    def test_is_admin(self):
        assert Profile(email='a@test.com', role='admin').is_admin
        assert not Profile(email='u@test.com', role='user').is_admin

    def test_email_unique(self, session, owner):
        session.add(Profile(email=owner.email, role='user', approved=True, is_active=True))
        with pytest.raises(Exception):  # IntegrityError
            session.commit()
        session.rollback()


class TestQuoteModel:
    """Tests for the derived quote status."""

    def _quote(self, status, valid_until):
        return Quote(quote_number='Q-20250101-001', status=status, valid_until=valid_until)

    def test_open_quote_past_valid_until_is_expired(self):
        today = date(2025, 3, 1)
        quote = self._quote(QuoteStatus.SENT.value, today - timedelta(days=1))

        assert quote.effective_status(today) == 'expired'
        assert quote.status == 'sent'

    def test_valid_until_today_is_not_expired(self):
        today = date(2025, 3, 1)
        assert self._quote('draft', today).effective_status(today) == 'draft'

    def test_closed_quotes_never_expire(self):
        today = date(2025, 3, 1)
        for status in ('accepted', 'rejected'):
            assert self._quote(status, today - timedelta(days=90)).effective_status(today) == status

    def test_only_drafts_are_editable(self):
        assert self._quote('draft', date.today()).is_editable
        assert not self._quote('sent', date.today()).is_editable

    def test_line_items_parse_stored_json(self):
        quote = self._quote('draft', date.today())
        quote.items = [{'type': 'labor', 'name': 'Demolition', 'unitPrice': 450, 'quantity': 1, 'totalPrice': 450}]

        items = quote.line_items

        assert items[0].name == 'Demolition'
        assert items[0].total_price == Decimal('450')


class TestProjectModel:
    """Tests for Project persistence and cascade."""

    def test_defaults(self, session, owner):
        project = Project(user_id=owner.id, client_name='Sam Lee', address='1 Main St')
        session.add(project)
        session.commit()

        assert project.id is not None
        assert project.status == 'assessment'
        assert project.priority == 'medium'
        assert project.project_type == 'bathroom'

    def test_one_permission_per_user(self, session, project, other, owner):
        session.add(ProjectPermission(project_id=project.id, user_id=other.id, permission_type='view', granted_by=owner.id))
        session.commit()
        session.add(ProjectPermission(project_id=project.id, user_id=other.id, permission_type='edit', granted_by=owner.id))
        with pytest.raises(Exception):  # IntegrityError
            session.commit()
        session.rollback()

    def test_to_dict(self, project):
        data = project.to_dict()
        assert data['client_name'] == 'Jane Smith'
        assert data['total_budget'] == 15000.0
        assert data['actual_start_date'] is None
