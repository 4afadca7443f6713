"""
Pytest fixtures for bizdash backend tests.

Provides the app on an in-memory database, two brands, users for each
built-in access level, a customer and a two-line quotation.
"""

import pytest

from bizdash import create_app
from bizdash.extensions import db
from bizdash.models import BrandProfile, Customer, Quotation, QuotationItem, Role, User, UserBrandScope
from bizdash.services import token_service
from bizdash.services.auth_service import create_default_roles, hash_password


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret-with-enough-length-for-hs256',
        'COOKIE_SECURE': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash(app):
    """One bcrypt hash shared by every fixture user (hashing is slow on purpose)."""
    return hash_password("Password123!")


@pytest.fixture(scope='function')
def setup_roles(db_session):
    """Setup built-in roles with their default matrices."""
    return {role.name: role for role in create_default_roles()}


@pytest.fixture(scope='function')
def brand_acme(db_session):
    brand = BrandProfile(name="Acme", slug="acme", is_active=True)
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def brand_beta(db_session):
    brand = BrandProfile(name="Beta", slug="beta", is_active=False)
    db_session.add(brand)
    db_session.commit()
    return brand


def make_user(db_session, email: str, password_hash: str, role_names=(), *, is_active=True, brands=()):
    """Create a user with roles and brand scope grants."""
    user = User(email=email, name=email.split("@")[0], password_hash=password_hash, is_active=is_active)
    for name in role_names:
        user.roles.append(db_session.query(Role).filter_by(name=name).one())
    db_session.add(user)
    db_session.flush()
    for brand in brands:
        db_session.add(UserBrandScope(user_id=user.id, brand_profile_id=brand.id))
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner_user(db_session, setup_roles, password_hash):
    return make_user(db_session, "owner@bizdash.test", password_hash, ["owner"])


@pytest.fixture(scope='function')
def admin_user(db_session, setup_roles, password_hash):
    return make_user(db_session, "admin@bizdash.test", password_hash, ["admin"])


@pytest.fixture(scope='function')
def staff_user(db_session, setup_roles, password_hash, brand_acme):
    """Staff member scoped to Acme only."""
    return make_user(db_session, "staff@bizdash.test", password_hash, ["staff"], brands=[brand_acme])


@pytest.fixture(scope='function')
def customer(db_session, brand_acme):
    customer = Customer(name="PT Contoh", email="buyer@contoh.test", brand_profile_id=brand_acme.id)
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def quotation(db_session, brand_acme, customer):
    """Draft quotation for Acme with two lines (total 2 x 150000 + 1 x 250000 cents)."""
    quotation = Quotation(
        quotation_number="QUO-2025-0001",
        status="Draft",
        customer_id=customer.id,
        brand_profile_id=brand_acme.id,
        items=[
            QuotationItem(product="Banner", quantity=2, price_cents=150000, subtotal_cents=300000),
            QuotationItem(product="Poster", quantity=1, price_cents=250000, subtotal_cents=250000),
        ],
        total_amount_cents=550000,
    )
    db_session.add(quotation)
    db_session.commit()
    return quotation


def auth_headers_for(user) -> dict:
    """Helper to create Authorization headers for a user."""
    token = token_service.sign_token(user_id=user.id, email=user.email, roles=user.role_names)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(owner_user):
    return auth_headers_for(owner_user)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers_for(admin_user)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return auth_headers_for(staff_user)
