"""
Pytest fixtures for motoparts backend tests.

Provides an in-memory database, a per-test table wipe, the test client and a
small catalog (one category, brand and product) to record transactions against.
"""

import pytest

from motoparts import create_app
from motoparts.extensions import db
from motoparts.models import Brand, Category, Motorcycle, Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTH_REQUIRED': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def auth_required(app):
    """Turn on token checks for the duration of a test."""
    app.config['AUTH_REQUIRED'] = True
    yield
    app.config['AUTH_REQUIRED'] = False


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="KAMPAS REM")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def brand(db_session):
    brand = Brand(name="FEDERAL")
    db_session.add(brand)
    db_session.commit()
    return brand


@pytest.fixture(scope='function')
def motorcycle(db_session):
    motorcycle = Motorcycle(manufacturer="Honda", model="Beat", type="Matic")
    db_session.add(motorcycle)
    db_session.commit()
    return motorcycle


def make_product(session, category, brand, *, stock=10, threshold=2, sell_price=50000, size=None):
    product = Product(
        category_id=category.id,
        brand_id=brand.id,
        size=size,
        buy_price=sell_price // 2,
        sell_price=sell_price,
        current_stock=stock,
        min_threshold=threshold,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session, category, brand):
    """Product with 10 in stock and a minimum threshold of 2."""
    return make_product(db_session, category, brand)


def stock_of(product_id: int) -> int:
    db.session.expire_all()
    return db.session.get(Product, product_id).current_stock


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
