import pytest_asyncio
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_session
from src.domain.catalog_item import CatalogItem
from src.domain.tax_rate import TaxRate

TENANT_ID = "tenant_xyz789"


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Create a fresh in-memory SQLite database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db_session):
    """Tax rates and a catalog for TENANT_ID"""
    db_session.add_all(
        [
            TaxRate(id="vat", tenant_id=TENANT_ID, name="VAT", percentage=Decimal("5"), is_default=True),
            TaxRate(id="levy", tenant_id=TENANT_ID, name="Levy", percentage=Decimal("2.5"), is_default=False),
            CatalogItem(id="hosting", tenant_id=TENANT_ID, name="Hosting", price=Decimal("40"), taxable=False),
        ]
    )
    await db_session.commit()
    return TENANT_ID


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
