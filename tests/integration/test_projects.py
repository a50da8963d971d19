"""
Integration tests for the project aggregate.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from rebath.exceptions import Forbidden, NotFound, ValidationError
from rebath.models import Assessment, JobWorkItem, Project, ProjectPermission, Quote
from rebath.services import (
    assessment_service,
    job_work_service,
    project_service,
    quote_service,
    sharing_service,
)


class TestProjectCrud:

    def test_create(self, session, owner):
        project = project_service.create_project(session, owner, {
            'client_name': '  Sam Lee ',
            'address': '1 Main St',
            'priority': 'high',
            'total_budget': '12000',
            'estimated_start_date': '2025-04-01',
        })

        assert project.user_id == owner.id
        assert project.client_name == 'Sam Lee'
        assert project.status == 'assessment'
        assert project.priority == 'high'
        assert project.total_budget == Decimal('12000')
        assert project.estimated_start_date == date(2025, 4, 1)

    def test_create_requires_client_and_address(self, session, owner):
        with pytest.raises(ValidationError):
            project_service.create_project(session, owner, {'client_name': 'Sam'})
        with pytest.raises(ValidationError):
            project_service.create_project(session, owner, {'address': '1 Main St'})

    def test_invalid_enum(self, session, owner):
        with pytest.raises(ValidationError):
            project_service.create_project(session, owner, {
                'client_name': 'Sam', 'address': '1 Main St', 'status': 'paused',
            })

    def test_negative_budget(self, session, owner, project):
        with pytest.raises(ValidationError):
            project_service.update_project(session, owner, project.id, {'total_budget': -1})

    def test_text_fields_must_be_text(self, session, owner, project):
        with pytest.raises(ValidationError):
            project_service.update_project(session, owner, project.id, {'address': 12})
        assert project.address == '12 Elm Street, Springfield'

    def test_any_status_change_allowed(self, session, owner, project):
        project_service.update_project(session, owner, project.id, {'status': 'completed'})
        updated = project_service.update_project(session, owner, project.id, {'status': 'assessment'})
        assert updated.status == 'assessment'

    def test_start(self, session, owner, project):
        started = project_service.start_project(session, owner, project.id, today=date(2025, 5, 2))
        assert started.status == 'started'
        assert started.actual_start_date == date(2025, 5, 2)

    def test_get_not_found_vs_forbidden(self, session, other, project):
        with pytest.raises(NotFound):
            project_service.get_project(session, other, 'missing')
        with pytest.raises(Forbidden):
            project_service.get_project(session, other, project.id)

    def test_view_grant_cannot_update(self, session, owner, other, project):
        sharing_service.share_project(session, owner, project.id, other.id, 'view')
        with pytest.raises(Forbidden):
            project_service.update_project(session, other, project.id, {'notes': 'hi'})


class TestListProjects:

    def test_owned_and_shared(self, session, owner, other, admin, project):
        own = project_service.create_project(session, other, {'client_name': 'Other client', 'address': '2 Pine'})

        assert {p.id for p in project_service.list_projects(session, other)} == {own.id}

        sharing_service.share_project(session, owner, project.id, other.id, 'view')
        assert {p.id for p in project_service.list_projects(session, other)} == {own.id, project.id}
        assert {p.id for p in project_service.list_projects(session, admin)} == {own.id, project.id}

    def test_filters(self, session, owner, project):
        project_service.create_project(session, owner, {
            'client_name': 'Bob Stone', 'address': '7 Lake Rd', 'priority': 'urgent',
        })

        assert [p.client_name for p in project_service.list_projects(session, owner, priority='urgent')] == ['Bob Stone']
        assert [p.client_name for p in project_service.list_projects(session, owner, search='elm')] == ['Jane Smith']
        assert project_service.list_projects(session, owner, status='completed') == []


class TestDeleteProject:

    def test_cascade(self, session, owner, other, project, make_labor_item):
        sharing_service.share_project(session, owner, project.id, other.id, 'edit')
        assessment_service.save_draft(session, owner, project.id, {'room_type': 'master_bathroom', 'room_name': 'Main'})
        quote_service.create_quote(session, owner, project.id, [make_labor_item()])
        job_work_service.create_work_item(session, owner, project.id, {
            'room_type': 'master_bathroom', 'work_description': 'Replace tub',
        })

        project_service.delete_project(session, owner, project.id)

        assert session.query(Project).count() == 0
        assert session.query(Assessment).count() == 0
        assert session.query(Quote).count() == 0
        assert session.query(JobWorkItem).count() == 0
        assert session.query(ProjectPermission).count() == 0

    def test_edit_grant_cannot_delete(self, session, owner, other, project):
        sharing_service.share_project(session, owner, project.id, other.id, 'admin')
        with pytest.raises(Forbidden):
            project_service.delete_project(session, other, project.id)
        assert session.query(Project).count() == 1


class TestProjectDashboard:

    def test_stats(self, session, owner, project):
        project_service.create_project(session, owner, {
            'client_name': 'Bob', 'address': '7 Lake Rd', 'status': 'in_progress', 'total_budget': 5000,
        })
        project_service.create_project(session, owner, {
            'client_name': 'Cy', 'address': '8 Lake Rd', 'status': 'completed',
        })

        stats = project_service.project_stats(session, owner)

        assert stats['total'] == 3
        assert stats['active'] == 1
        assert stats['completed'] == 1
        assert stats['total_budget'] == 20000.0
        assert stats['average_budget'] == 10000.0

    def test_due_soon(self, session, owner, project):
        today = date(2025, 6, 1)
        project_service.update_project(session, owner, project.id, {'estimated_completion_date': '2025-06-05'})
        project_service.create_project(session, owner, {
            'client_name': 'Later', 'address': '3 Elm', 'estimated_completion_date': '2025-07-30',
        })
        project_service.create_project(session, owner, {
            'client_name': 'Done', 'address': '4 Elm', 'status': 'completed',
            'estimated_completion_date': '2025-06-03',
        })

        due = project_service.projects_due_soon(session, owner, days=7, today=today)

        assert [p.client_name for p in due] == ['Jane Smith']

    def test_recent_limit(self, session, owner, project):
        for n in range(3):
            project_service.create_project(session, owner, {'client_name': f'C{n}', 'address': f'{n} St'})
        assert len(project_service.recent_projects(session, owner, limit=2)) == 2


class TestWorkItems:

    def test_crud(self, session, owner, project):
        item = job_work_service.create_work_item(session, owner, project.id, {
            'room_type': 'master_bathroom', 'work_description': 'Retile shower', 'estimated_hours': '12.5',
        })
        assert item.status == 'pending'
        assert item.priority == 'medium'

        item = job_work_service.update_work_item(session, owner, project.id, item.id, {'status': 'in_progress'})
        assert item.status == 'in_progress'

        assert len(job_work_service.list_work_items(session, owner, project.id, room_type='master_bathroom')) == 1
        assert job_work_service.list_work_items(session, owner, project.id, room_type='kitchen') == []

        job_work_service.delete_work_item(session, owner, project.id, item.id)
        assert session.query(JobWorkItem).count() == 0

    def test_invalid_status(self, session, owner, project):
        item = job_work_service.create_work_item(session, owner, project.id, {
            'room_type': 'kitchen', 'work_description': 'Move sink',
        })
        with pytest.raises(ValidationError):
            job_work_service.update_work_item(session, owner, project.id, item.id, {'status': 'blocked'})

    def test_requires_description(self, session, owner, project):
        with pytest.raises(ValidationError):
            job_work_service.create_work_item(session, owner, project.id, {'room_type': 'kitchen'})
