import pytest
from decimal import Decimal
import uuid

from rebath import create_app
from rebath import database
from rebath.models import (
    Profile, Project, FixtureCategory, FixtureOption, RoomType, UserRole
)


class FakeStorage:
    """In-memory stand-in for the S3 storage service."""

    public_url = 'http://storage.test/assessment-photos'

    def __init__(self):
        self.objects = {}
        self.deleted = []

    def validate_file(self, file):
        from rebath.exceptions import ValidationError
        if not file or not file.filename:
            raise ValidationError('No file was provided')

    def upload_file(self, file, object_name, content_type=None):
        self.validate_file(file)
        self.objects[object_name] = file.stream.read()
        return self.get_public_url(object_name)

    def delete_file(self, object_name):
        self.objects.pop(object_name, None)
        self.deleted.append(object_name)

    def get_public_url(self, object_name):
        return f'{self.public_url}/{object_name}'

    def object_name_from_url(self, url):
        prefix = f'{self.public_url}/'
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None


@pytest.fixture(scope='function')
def app():
    """Application on a fresh in-memory database."""
    app = create_app('config.TestConfig')
    app.extensions['storage'] = FakeStorage()

    with app.app_context():
        database.create_all()
        yield app
        database.get_session().remove()
        database.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Scoped database session bound to the test database."""
    return database.get_session()


@pytest.fixture(scope='function')
def storage(app):
    return app.extensions['storage']


@pytest.fixture(scope='function')
def login(client):
    """
    Log the test client in as a user id.

    Read ids off fixtures before the first request: each request closes the
    scoped session, which detaches every object the test holds.
    """
    def _login(user_id):
        with client.session_transaction() as sess:
            sess['user_id'] = user_id
        return client
    return _login


def _profile(session, email, full_name, role=UserRole.USER.value, approved=True):
    profile = Profile(
        email=email,
        full_name=full_name,
        role=role,
        approved=approved,
        is_active=True
    )
    profile.set_password('password123')
    session.add(profile)
    session.commit()
    return profile


@pytest.fixture(scope='function')
def owner(session):
    """Project owner."""
    return _profile(session, f'owner-{uuid.uuid4().hex[:8]}@test.com', 'Olivia Owner')


@pytest.fixture(scope='function')
def other(session):
    """A second, unrelated user."""
    return _profile(session, f'other-{uuid.uuid4().hex[:8]}@test.com', 'Oscar Other')


@pytest.fixture(scope='function')
def admin(session):
    """Global administrator."""
    return _profile(session, f'admin-{uuid.uuid4().hex[:8]}@test.com', 'Ada Admin', role=UserRole.ADMIN.value)


@pytest.fixture(scope='function')
def project(session, owner):
    """Bathroom project owned by ``owner``."""
    project = Project(
        user_id=owner.id,
        client_name='Jane Smith',
        client_email='jane@example.com',
        client_phone='555-0100',
        address='12 Elm Street, Springfield',
        project_type='bathroom',
        status='assessment',
        priority='medium',
        total_budget=Decimal('15000.00')
    )
    session.add(project)
    session.commit()
    return project


@pytest.fixture(scope='function')
def category(session):
    category = FixtureCategory(name='Faucets', description='Sink faucets', display_order=0)
    session.add(category)
    session.commit()
    return category


@pytest.fixture(scope='function')
def faucet(session, category):
    """Active faucet: $150 + $50 installation."""
    option = FixtureOption(
        category_id=category.id,
        name='Single-Handle Faucet',
        brand='Moen',
        model='Align 6190',
        color='Chrome',
        base_price=Decimal('150.00'),
        installation_cost=Decimal('50.00'),
        is_active=True
    )
    session.add(option)
    session.commit()
    return option


@pytest.fixture(scope='function')
def retired_option(session, category):
    option = FixtureOption(
        category_id=category.id,
        name='Discontinued Faucet',
        brand='Delta',
        model='Old 100',
        base_price=Decimal('99.00'),
        installation_cost=Decimal('0'),
        is_active=False
    )
    session.add(option)
    session.commit()
    return option


@pytest.fixture(scope='function')
def room_type(session):
    room_type = RoomType(name='master_bathroom', display_name='Master Bathroom', display_order=0, is_active=True)
    session.add(room_type)
    session.commit()
    return room_type


@pytest.fixture
def make_fixture_item():
    return fixture_item


@pytest.fixture
def make_labor_item():
    return labor_item


def fixture_item(option_id='opt-1', name='Vanity', unit_price=200, installation_cost=0, quantity=1):
    """Client-shaped fixture line."""
    return {
        'id': str(uuid.uuid4()),
        'type': 'fixture',
        'fixtureId': option_id,
        'name': name,
        'brand': 'Kohler',
        'model': 'K-1',
        'quantity': quantity,
        'unitPrice': unit_price,
        'installationCost': installation_cost,
    }


def labor_item(name='Demolition', unit_price=100, quantity=1):
    return {
        'id': str(uuid.uuid4()),
        'type': 'labor',
        'name': name,
        'description': 'Remove existing fixtures',
        'quantity': quantity,
        'unitPrice': unit_price,
    }
