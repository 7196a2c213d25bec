"""Pytest configuration and shared fixtures for ledger tests."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rentledger.models import Base
from rentledger.models.contract import Contract, ContractStatus
from rentledger.services import create_engine_for_url, create_session_factory, init_models
from rentledger.services.ledger_store import LedgerStore


@pytest.fixture
async def async_engine():
    """In-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_db_session(session_factory):
    """Create async test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(async_db_session):
    return LedgerStore(async_db_session)


@pytest.fixture
def make_contract(async_db_session):
    """Factory creating a committed contract (1000 sqft at 50 + 20 by default)."""
    counter = {"n": 0}

    async def _make(
        space_in_sqft: str = "1000",
        rent_rate: str = "50",
        service_charge_rate: str = "20",
        status: ContractStatus = ContractStatus.ACTIVE,
    ) -> Contract:
        counter["n"] += 1
        contract = Contract(
            contract_number=f"BHTPA-2024-{counter['n']:03d}",
            space_in_sqft=Decimal(space_in_sqft),
            rent_rate=Decimal(rent_rate),
            service_charge_rate=Decimal(service_charge_rate),
            status=status,
            start_date=date(2024, 1, 1),
        )
        async_db_session.add(contract)
        await async_db_session.commit()
        return contract

    return _make


@pytest.fixture
async def contract(make_contract):
    return await make_contract()


@pytest.fixture
async def file_session_factory(tmp_path):
    """Session factory over a SQLite file, so each session gets its own connection."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path}/ledger.db")
    await init_models(engine)
    yield create_session_factory(engine)
    await engine.dispose()
