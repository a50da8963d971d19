"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-admin: Create an approved administrator account
- flask seed-catalog: Load the starter fixture catalog and room types
"""
from decimal import Decimal

import click

from rebath.database import create_all, get_session
from rebath.exceptions import RebathError
from rebath.models import FixtureCategory, FixtureOption, RoomType, UserRole
from rebath.services import auth_service

CATEGORIES = [
    ('Faucets', 'Sink and tub faucets'),
    ('Sinks', 'Undermount, vessel and pedestal sinks'),
    ('Toilets', 'One- and two-piece toilets'),
    ('Tubs & Showers', 'Bathtubs, shower bases and enclosures'),
    ('Cabinets & Vanities', 'Vanities and storage cabinets'),
    ('Countertops', 'Stone and solid-surface tops'),
    ('Lighting', 'Vanity lights and fans'),
    ('Hardware', 'Towel bars, hooks and pulls'),
]

# (category, name, brand, model, base_price, installation_cost)
OPTIONS = [
    ('Faucets', 'Single-Handle Bathroom Faucet', 'Moen', 'Align 6190', '189.00', '95.00'),
    ('Faucets', 'Widespread Bathroom Faucet', 'Delta', 'Trinsic 3559', '265.00', '120.00'),
    ('Sinks', 'Undermount Rectangular Sink', 'Kohler', 'Caxton K-20000', '210.00', '150.00'),
    ('Toilets', 'Two-Piece Elongated Toilet', 'TOTO', 'Drake CST776', '395.00', '225.00'),
    ('Toilets', 'Comfort Height Toilet', 'American Standard', 'Cadet 3', '329.00', '225.00'),
    ('Tubs & Showers', 'Alcove Soaking Tub', 'Kohler', 'Bellwether K-837', '749.00', '650.00'),
    ('Cabinets & Vanities', '36in Shaker Vanity', 'Home Decorators', 'Sturgess 36', '599.00', '300.00'),
    ('Countertops', 'Quartz Vanity Top', 'Silestone', 'Calacatta Gold 37', '480.00', '200.00'),
    ('Lighting', 'Three-Light Vanity Fixture', 'Progress', 'Archie P2997', '139.00', '110.00'),
    ('Hardware', '24in Towel Bar', 'Moen', 'Voss YB5124', '59.00', '35.00'),
]

ROOM_TYPES = [
    ('master_bathroom', 'Master Bathroom'),
    ('guest_bathroom', 'Guest Bathroom'),
    ('half_bath', 'Half Bath'),
    ('kids_bathroom', 'Kids Bathroom'),
    ('kitchen', 'Kitchen'),
    ('laundry', 'Laundry Room'),
]


def seed_catalog(session):
    """Insert the starter catalog. Returns counts; tables with rows are left alone."""
    created = {'categories': 0, 'options': 0, 'room_types': 0}

    if session.query(FixtureCategory.id).first() is None:
        categories = {}
        for order, (name, description) in enumerate(CATEGORIES):
            category = FixtureCategory(name=name, description=description, display_order=order)
            session.add(category)
            categories[name] = category
        session.flush()
        created['categories'] = len(categories)

        for category_name, name, brand, model, price, install in OPTIONS:
            session.add(FixtureOption(
                category_id=categories[category_name].id,
                name=name,
                brand=brand,
                model=model,
                base_price=Decimal(price),
                installation_cost=Decimal(install),
                is_active=True,
            ))
            created['options'] += 1

    if session.query(RoomType.id).first() is None:
        for order, (name, display_name) in enumerate(ROOM_TYPES):
            session.add(RoomType(name=name, display_name=display_name, display_order=order, is_active=True))
            created['room_types'] += 1

    session.commit()
    return created


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    @click.option('--name', default=None, help='Full name')
    def create_admin(email, password, name):
        """Create an approved administrator account."""
        try:
            profile = auth_service.register(
                get_session(), email, password,
                full_name=name,
                role=UserRole.ADMIN.value,
                approved=True,
            )
        except RebathError as e:
            click.echo(click.style(f'Could not create admin: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('Administrator created.', fg='green', bold=True))
        click.echo(f'   Email: {profile.email}')
        click.echo(f'   ID: {profile.id}')

    @app.cli.command('seed-catalog')
    def seed_catalog_command():
        """Load starter categories, fixture options and room types."""
        created = seed_catalog(get_session())
        if not any(created.values()):
            click.echo('Catalog already populated; nothing to do.')
            return
        click.echo(click.style(
            f"Seeded {created['categories']} categories, {created['options']} options, "
            f"{created['room_types']} room types.",
            fg='green'
        ))
