"""
POS Back Office - Test Configuration

Pytest fixtures and configuration.

Every test gets its own SQLite database file; set TEST_DATABASE_URL to run
the suite against another database instead. Requests and fixtures use
separate sessions, the way the application does.
"""

import os
from datetime import date
from typing import AsyncGenerator, Callable, Dict
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backoffice.database import Base, get_async_session
from backoffice.models.account import Account, AccountCategory, AccountNature, AccountType
from backoffice.models.company import Company
from backoffice.models.currency import Currency
from backoffice.models.financial_year import FinancialYear
from backoffice.models.user import User, UserRole
from backoffice.utils.security import create_access_token, get_password_hash
from main import app

import backoffice.models  # noqa: F401

TEST_PASSWORD = "TestPassword123!"


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy drive transactions itself so SAVEPOINT works on SQLite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh database for each test."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'backoffice_test.db'}"
    engine = create_async_engine(url, echo=False, poolclass=NullPool)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data. Fixtures commit before any request runs."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client; each request gets its own session."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _headers_for(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id), "username": user.username})
    return {"Authorization": f"Bearer {token}"}


def _year_containing(today: date) -> tuple:
    return date(today.year, 1, 1), date(today.year, 12, 31)


# ===========================================
# TENANT A
# ===========================================

@pytest_asyncio.fixture
async def company(db_session: AsyncSession) -> Company:
    company = Company(id=uuid4(), name="Acme Retail", code="ACME", country="Nigeria")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, company: Company) -> User:
    user = User(
        id=uuid4(),
        username="admin",
        email="admin@acme.test",
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name="Ada",
        last_name="Admin",
        role=UserRole.ADMIN,
        company_id=company.id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def cashier_user(db_session: AsyncSession, company: Company) -> User:
    user = User(
        id=uuid4(),
        username="cashier",
        email="cashier@acme.test",
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name="Cole",
        last_name="Cashier",
        role=UserRole.CASHIER,
        company_id=company.id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def auth_headers(admin_user: User) -> Dict[str, str]:
    return _headers_for(admin_user)


@pytest.fixture
def cashier_headers(cashier_user: User) -> Dict[str, str]:
    return _headers_for(cashier_user)


@pytest_asyncio.fixture
async def default_currency(db_session: AsyncSession, company: Company) -> Currency:
    currency = Currency(
        id=uuid4(),
        company_id=company.id,
        code="NGN",
        name="Nigerian Naira",
        symbol="₦",
        is_default=True,
        is_active=True,
    )
    db_session.add(currency)
    await db_session.commit()
    return currency


@pytest_asyncio.fixture
async def usd_currency(db_session: AsyncSession, company: Company, default_currency: Currency) -> Currency:
    currency = Currency(
        id=uuid4(),
        company_id=company.id,
        code="USD",
        name="US Dollar",
        symbol="$",
        is_default=False,
        is_active=True,
    )
    db_session.add(currency)
    await db_session.commit()
    return currency


@pytest_asyncio.fixture
async def financial_year(db_session: AsyncSession, company: Company) -> FinancialYear:
    """Current, open financial year covering today."""
    start, end = _year_containing(date.today())
    year = FinancialYear(
        id=uuid4(),
        company_id=company.id,
        name=f"FY {start.year}",
        start_date=start,
        end_date=end,
        is_current=True,
        is_active=True,
        is_closed=False,
    )
    db_session.add(year)
    await db_session.commit()
    return year


@pytest_asyncio.fixture
async def account_types(db_session: AsyncSession, company: Company) -> Dict[str, AccountType]:
    specs = {
        "asset": ("Current Assets", "CA", AccountCategory.ASSET, AccountNature.DEBIT),
        "liability": ("Current Liabilities", "CL", AccountCategory.LIABILITY, AccountNature.CREDIT),
        "equity": ("Equity", "EQ", AccountCategory.EQUITY, AccountNature.CREDIT),
        "revenue": ("Revenue", "REV", AccountCategory.REVENUE, AccountNature.CREDIT),
        "expense": ("Operating Expenses", "OPEX", AccountCategory.EXPENSE, AccountNature.DEBIT),
    }
    types = {}
    for key, (name, code, category, nature) in specs.items():
        types[key] = AccountType(
            id=uuid4(), company_id=company.id, name=name, code=code, category=category, nature=nature,
        )
        db_session.add(types[key])
    await db_session.commit()
    return types


@pytest_asyncio.fixture
async def accounts(
    db_session: AsyncSession, company: Company, account_types: Dict[str, AccountType],
) -> Dict[str, Account]:
    """A small chart of accounts. ``other_income`` is a child of ``revenue``."""
    specs = [
        ("cash", "1000", "Cash at Hand", "asset"),
        ("receivable", "1100", "Accounts Receivable", "asset"),
        ("wht", "1200", "WHT Receivable", "asset"),
        ("tax", "2100", "VAT Payable", "liability"),
        ("capital", "3000", "Owner Capital", "equity"),
        ("revenue", "4000", "Sales Revenue", "revenue"),
        ("discount", "5100", "Discount Allowed", "expense"),
        ("rent", "5200", "Rent Expense", "expense"),
    ]
    created = {}
    for key, code, name, type_key in specs:
        account_type = account_types[type_key]
        created[key] = Account(
            id=uuid4(),
            company_id=company.id,
            code=code,
            name=name,
            type=account_type.category,
            nature=account_type.nature,
            account_type_id=account_type.id,
        )
        db_session.add(created[key])
    await db_session.flush()

    created["other_income"] = Account(
        id=uuid4(),
        company_id=company.id,
        code="4100",
        name="Other Income",
        type=AccountCategory.REVENUE,
        nature=AccountNature.CREDIT,
        account_type_id=account_types["revenue"].id,
        parent_id=created["revenue"].id,
    )
    db_session.add(created["other_income"])
    await db_session.commit()
    return created


@pytest.fixture
def ledger_setup(admin_user, default_currency, financial_year, accounts):
    """Everything needed to post to the ledger for tenant A."""
    return {
        "user": admin_user,
        "currency": default_currency,
        "year": financial_year,
        "accounts": accounts,
    }


@pytest.fixture
def journal_payload(financial_year: FinancialYear) -> Callable[..., dict]:
    """Build a journal entry request body from ``(account, type, amount)`` tuples."""

    def build(*lines, entry_date: date = None, description: str = "Test entry", **extra) -> dict:
        body = {
            "entry_date": (entry_date or date.today()).isoformat(),
            "financial_year_id": str(financial_year.id),
            "description": description,
            "lines": [
                {"account_id": str(account.id), "type": line_type, "amount": str(amount)}
                for account, line_type, amount in lines
            ],
        }
        body.update(extra)
        return body

    return build


# ===========================================
# TENANT B
# ===========================================

@pytest_asyncio.fixture
async def other_company(db_session: AsyncSession) -> Company:
    company = Company(id=uuid4(), name="Bolt Stores", code="BOLT")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession, other_company: Company) -> User:
    user = User(
        id=uuid4(),
        username="bolt-admin",
        email="admin@bolt.test",
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name="Bea",
        last_name="Bolt",
        role=UserRole.ADMIN,
        company_id=other_company.id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def other_headers(other_user: User) -> Dict[str, str]:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def other_account(db_session: AsyncSession, other_company: Company) -> Account:
    account_type = AccountType(
        id=uuid4(),
        company_id=other_company.id,
        name="Current Assets",
        code="CA",
        category=AccountCategory.ASSET,
        nature=AccountNature.DEBIT,
    )
    db_session.add(account_type)
    await db_session.flush()
    account = Account(
        id=uuid4(),
        company_id=other_company.id,
        code="1000",
        name="Bolt Cash",
        type=AccountCategory.ASSET,
        nature=AccountNature.DEBIT,
        account_type_id=account_type.id,
    )
    db_session.add(account)
    await db_session.commit()
    return account


@pytest_asyncio.fixture
async def system_admin(db_session: AsyncSession) -> User:
    """Administrator without a company who reads across tenants."""
    user = User(
        id=uuid4(),
        username="root",
        email="root@backoffice.test",
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name="Sys",
        last_name="Admin",
        role=UserRole.ADMIN,
        is_system_admin=True,
        company_id=None,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def system_admin_headers(system_admin: User) -> Dict[str, str]:
    return _headers_for(system_admin)
