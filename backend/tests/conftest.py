"""Pytest configuration and fixtures for onboarding tests.

Each test gets a fresh in-memory SQLite database with the full schema, an
HTTP client wired to it, and a seeded organization with one user.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models import (
    Organization,
    Project,
    SalesHandover,
    SalesHandoverItem,
    SalesHandoverWizardMap,
    User,
    WizardDefinition,
    WizardStep,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_org(db_session: AsyncSession) -> Organization:
    org = Organization(name="Acme Retail")
    db_session.add(org)
    await db_session.flush()
    return org


@pytest_asyncio.fixture
async def other_org(db_session: AsyncSession) -> Organization:
    org = Organization(name="Globex")
    db_session.add(org)
    await db_session.flush()
    return org


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, test_org: Organization) -> User:
    user = User(
        email="pm@example.com",
        full_name="Test PM",
        org_id=test_org.id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
def test_token(test_user: User) -> str:
    return create_access_token(user_id=test_user.id)


@pytest.fixture
def auth_headers(test_token: str) -> dict:
    """Create authorization headers with test token."""
    return {"Authorization": f"Bearer {test_token}"}


@pytest_asyncio.fixture
async def onboarding(db_session: AsyncSession, test_org: Organization) -> dict:
    """A GB project with a confirmed handover and the wizards it maps to.

    Handover items:
        payment_provider=stripe   → payments
        plan=enterprise           → payments (second rule, same wizard)
        shipping=international    → customs
        crm=hubspot               → crm (rule inactive)

    payments: 2 required steps (text, checkbox) + 1 optional textarea
    customs:  2 required steps, one country_specific limited to US
    """
    project = Project(org_id=test_org.id, name="Acme EU launch", country="GB")
    db_session.add(project)
    await db_session.flush()

    handover = SalesHandover(
        org_id=test_org.id, project_id=project.id, status="CONFIRMED"
    )
    db_session.add(handover)
    await db_session.flush()

    for key, value in [
        ("payment_provider", "stripe"),
        ("plan", "enterprise"),
        ("shipping", "international"),
        ("crm", "hubspot"),
    ]:
        db_session.add(SalesHandoverItem(
            sales_handover_id=handover.id, item_key=key, item_value=value,
        ))

    for key, value, wizard_key, active in [
        ("payment_provider", "stripe", "payments", True),
        ("plan", "enterprise", "payments", True),
        ("shipping", "international", "customs", True),
        ("crm", "hubspot", "crm", False),
    ]:
        db_session.add(SalesHandoverWizardMap(
            org_id=test_org.id, item_key=key, item_value=value,
            wizard_key=wizard_key, is_active=active,
        ))

    payments = WizardDefinition(org_id=test_org.id, key="payments", name="Payments setup")
    customs = WizardDefinition(org_id=test_org.id, key="customs", name="Customs & duties")
    crm = WizardDefinition(org_id=test_org.id, key="crm", name="CRM sync")
    db_session.add_all([payments, customs, crm])
    await db_session.flush()

    steps = {
        "business_name": WizardStep(
            wizard_id=payments.id, step_key="business_name", title="Legal business name",
            position=1, step_type="text", is_required=True, config={},
        ),
        "terms": WizardStep(
            wizard_id=payments.id, step_key="terms", title="Accept processing terms",
            position=2, step_type="checkbox", is_required=True,
            config={"label": "I accept"},
        ),
        "notes": WizardStep(
            wizard_id=payments.id, step_key="notes", title="Anything else?",
            position=3, step_type="textarea", is_required=False, config={},
        ),
        "ein": WizardStep(
            wizard_id=customs.id, step_key="ein", title="US EIN",
            position=1, step_type="country_specific", is_required=True,
            config={"countries": ["US"]},
        ),
        "incoterm": WizardStep(
            wizard_id=customs.id, step_key="incoterm", title="Incoterm",
            position=2, step_type="select", is_required=True,
            config={"options": [{"value": "DDP", "label": "DDP"}, {"value": "DAP", "label": "DAP"}]},
        ),
        "crm_url": WizardStep(
            wizard_id=crm.id, step_key="crm_url", title="CRM URL",
            position=1, step_type="text", is_required=True, config={},
        ),
    }
    db_session.add_all(steps.values())
    await db_session.flush()

    return {
        "project": project,
        "handover": handover,
        "wizards": {"payments": payments, "customs": customs, "crm": crm},
        "steps": steps,
    }


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
