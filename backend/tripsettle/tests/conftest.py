"""
Shared fixtures: in-memory database, data factories and an API client.
"""
from datetime import date
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tripsettle.models  # noqa: F401
from tripsettle.core.security import create_access_token
from tripsettle.core.utils import round_money
from tripsettle.db.base import Base
from tripsettle.db.session import get_db
from tripsettle.models import Expense, ExpenseParticipant, MemberRole, Travel, TravelMember, User
from tripsettle.services.cache_service import InMemoryTTLCache, SummaryCache, get_summary_cache
from tripsettle.services.expense_service import split_shares
from tripsettle.services.fx_service import StaticExchangeRateProvider, get_exchange_rate_provider

_usernames = count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(name="member", with_name=True):
        user = User(username=f"{name}{next(_usernames)}", name=name if with_name else None)
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_travel(db):
    def _make_travel(members, base_currency="KRW", title="Trip"):
        travel = Travel(title=title, base_currency=base_currency)
        db.add(travel)
        db.flush()
        for position, user in enumerate(members):
            db.add(TravelMember(
                travel_id=travel.id,
                user_id=user.id,
                role=MemberRole.OWNER if position == 0 else MemberRole.MEMBER,
            ))
        db.commit()
        return travel
    return _make_travel


@pytest.fixture
def add_expense(db):
    """Write an expense straight into the ledger (already in base currency)."""
    def _add_expense(travel, payer, amount, participants, title="Expense"):
        converted = round_money(amount)
        shares = split_shares(converted, [p.id for p in participants])
        expense = Expense(
            travel_id=travel.id,
            payer_id=payer.id,
            author_id=payer.id,
            title=title,
            amount=converted,
            currency=travel.base_currency,
            converted_amount=converted,
            expense_date=date(2025, 11, 14),
        )
        expense.participants = [
            ExpenseParticipant(member_id=member_id, split_amount=share)
            for member_id, share in shares.items()
        ]
        db.add(expense)
        db.commit()
        return expense
    return _add_expense


@pytest.fixture
def rate_provider():
    return StaticExchangeRateProvider({
        ("USD", "KRW"): Decimal("1350.50"),
        ("JPY", "KRW"): Decimal("9.12"),
    })


@pytest.fixture
def summary_cache():
    return SummaryCache(InMemoryTTLCache(), ttl=60)


@pytest.fixture
def client(db, rate_provider, summary_cache):
    from tripsettle.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_exchange_rate_provider] = lambda: rate_provider
    app.dependency_overrides[get_summary_cache] = lambda: summary_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
