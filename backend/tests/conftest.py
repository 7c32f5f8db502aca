"""
Pytest fixtures for kiosk backend tests.

Provides an in-memory database, two tenants with admin/cashier users,
bearer tokens for them, and small factories for catalog and sales rows.
"""

from datetime import datetime

import pytest
from kiosk import create_app
from kiosk.extensions import db
from kiosk.models import (
    Addon,
    Category,
    Expense,
    InventoryItem,
    Product,
    ProductAddon,
    ProductSize,
    Size,
    Tenant,
    Transaction,
    TransactionItem,
    User,
    ROLE_ADMIN,
    ROLE_CASHIER,
)
from kiosk.services.auth_service import hash_password
from kiosk.services.session_service import create_session

PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
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

        db.session.rollback()


def make_tenant(db_session, name: str, slug: str, **fields) -> Tenant:
    tenant = Tenant(name=name, slug=slug, is_active=True, **fields)
    db_session.add(tenant)
    db_session.commit()
    return tenant


def make_user(db_session, tenant: Tenant, username: str, role: str) -> User:
    user = User(
        tenant_id=tenant.id,
        username=username,
        email=f"{username}@{tenant.slug}.test",
        password_hash=hash_password(PASSWORD, rounds=4),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def token_for(user: User) -> str:
    _, token = create_session(user)
    return token


@pytest.fixture(scope='function')
def tenant_a(db_session):
    return make_tenant(db_session, "Lemon Stand A", "lemon-a")


@pytest.fixture(scope='function')
def tenant_b(db_session):
    return make_tenant(db_session, "Lemon Stand B", "lemon-b")


@pytest.fixture(scope='function')
def admin_a(db_session, tenant_a):
    return make_user(db_session, tenant_a, "admin_a", ROLE_ADMIN)


@pytest.fixture(scope='function')
def cashier_a(db_session, tenant_a):
    return make_user(db_session, tenant_a, "cashier_a", ROLE_CASHIER)


@pytest.fixture(scope='function')
def admin_b(db_session, tenant_b):
    return make_user(db_session, tenant_b, "admin_b", ROLE_ADMIN)


@pytest.fixture(scope='function')
def admin_headers(admin_a):
    return auth_headers(token_for(admin_a))


@pytest.fixture(scope='function')
def cashier_headers(cashier_a):
    return auth_headers(token_for(cashier_a))


@pytest.fixture(scope='function')
def admin_b_headers(admin_b):
    return auth_headers(token_for(admin_b))


def seed_catalog(db_session, tenant: Tenant, prefix: str) -> dict:
    """
    One category, two sizes, two addons and a product linked to the
    "regular" size and the "pearls" addon. Ids are prefixed per tenant.
    """
    category = Category(id=f"{prefix}-lemonade", tenant_id=tenant.id, name="Lemonade", sequence_no=1)
    regular = Size(id=f"{prefix}-regular", tenant_id=tenant.id, name="Regular", price_modifier_cents=0)
    large = Size(id=f"{prefix}-large", tenant_id=tenant.id, name="Large", price_modifier_cents=2000)
    pearls = Addon(id=f"{prefix}-pearls", tenant_id=tenant.id, name="Pearls", price_cents=1500)
    jelly = Addon(id=f"{prefix}-jelly", tenant_id=tenant.id, name="Jelly", price_cents=1000)
    db_session.add_all([category, regular, large, pearls, jelly])
    db_session.flush()

    product = Product(
        id=f"{prefix}-classic",
        tenant_id=tenant.id,
        category_id=category.id,
        name="Classic Lemonade",
        price_cents=8900,
    )
    product.size_links.append(ProductSize(size_id=regular.id))
    product.addon_links.append(ProductAddon(addon_id=pearls.id))
    db_session.add(product)
    db_session.commit()

    return {
        "category": category.id,
        "sizes": [regular.id, large.id],
        "addons": [pearls.id, jelly.id],
        "product": product.id,
    }


@pytest.fixture(scope='function')
def catalog_a(db_session, tenant_a):
    return seed_catalog(db_session, tenant_a, "a")


@pytest.fixture(scope='function')
def catalog_b(db_session, tenant_b):
    return seed_catalog(db_session, tenant_b, "b")


def make_transaction(
    db_session,
    tenant: Tenant,
    user: User,
    product_id: str,
    total_cents: int,
    *,
    occurred_at: datetime,
    quantity: int = 1,
    payment_method: str = "CASH",
    payment_status: str = "COMPLETED",
    void_status: str = "NONE",
) -> Transaction:
    t = Transaction(
        tenant_id=tenant.id,
        user_id=user.id,
        subtotal_cents=total_cents,
        total_cents=total_cents,
        payment_method=payment_method,
        payment_status=payment_status,
        void_status=void_status,
        occurred_at=occurred_at,
    )
    t.items.append(TransactionItem(product_id=product_id, quantity=quantity, subtotal_cents=total_cents))
    db_session.add(t)
    db_session.commit()
    return t


def make_expense(
    db_session,
    tenant: Tenant,
    user: User,
    amount_cents: int,
    *,
    date: datetime,
    category: str = "SUPPLIES",
    void_status: str = "NONE",
) -> Expense:
    e = Expense(
        tenant_id=tenant.id,
        user_id=user.id,
        description="Lemons",
        amount_cents=amount_cents,
        category=category,
        date=date,
        void_status=void_status,
    )
    db_session.add(e)
    db_session.commit()
    return e


def make_inventory_item(db_session, tenant: Tenant, name: str = "Lemons", **fields) -> InventoryItem:
    item = InventoryItem(
        tenant_id=tenant.id,
        name=name,
        category=fields.pop("category", "MAINS"),
        unit=fields.pop("unit", "pcs"),
        **fields,
    )
    db_session.add(item)
    db_session.commit()
    return item
