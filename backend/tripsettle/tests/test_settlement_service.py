"""
Tests for the settlement summary service.
"""
from decimal import Decimal

import pytest

from tripsettle.core.exceptions import NotFoundError, NothingToSettleError, PermissionDeniedError
from tripsettle.models.settlement import SettlementStatus, TravelSettlement
from tripsettle.services.cache_service import InMemoryTTLCache, SummaryCache
from tripsettle.services.settlement_service import UNKNOWN_MEMBER, SettlementService


def test_scenario_three_members_one_payer(db, make_user, make_travel, add_expense):
    a, b, c = make_user("Alice"), make_user("Bob"), make_user("Chloe")
    travel = make_travel([a, b, c])
    add_expense(travel, a, Decimal("30000"), [a, b, c])

    summary = SettlementService(db).get_summary(travel.id, b.id)

    assert {(x.member_id, x.balance) for x in summary.balances} == {
        (a.id, Decimal("20000.00")),
        (b.id, Decimal("-10000.00")),
        (c.id, Decimal("-10000.00")),
    }
    assert {(s.from_member, s.to_member, s.amount) for s in summary.recommended_settlements} == {
        ("Bob", "Alice", Decimal("10000.00")),
        ("Chloe", "Alice", Decimal("10000.00")),
    }
    assert all(s.status == SettlementStatus.PENDING for s in summary.recommended_settlements)
    assert summary.saved_settlements == []


def test_scenario_save_then_complete(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db)

    saved = service.save(travel.id, a.id).saved_settlements
    assert len(saved) == 1
    assert (saved[0].from_member, saved[0].to_member, saved[0].amount) == ("Bob", "Alice", Decimal("50.00"))
    assert saved[0].status == SettlementStatus.PENDING

    summary = service.complete(travel.id, b.id, saved[0].id)

    assert summary.saved_settlements[0].id == saved[0].id
    assert summary.saved_settlements[0].status == SettlementStatus.COMPLETED


def test_save_without_debts_is_nothing_to_settle(db, make_user, make_travel):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])

    with pytest.raises(NothingToSettleError):
        SettlementService(db).save(travel.id, a.id)

    assert db.query(TravelSettlement).count() == 0


def test_save_when_already_even_is_nothing_to_settle(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("60"), [a, b])
    add_expense(travel, b, Decimal("60"), [a, b])

    with pytest.raises(NothingToSettleError):
        SettlementService(db).save(travel.id, b.id)


@pytest.mark.parametrize("operation", ["summary", "save", "complete", "statistics"])
def test_non_member_is_denied(db, make_user, make_travel, add_expense, operation):
    a, b, outsider = make_user("Alice"), make_user("Bob"), make_user("Mallory")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db)
    service.save(travel.id, a.id)
    settlement_id = service.get_summary(travel.id, a.id).saved_settlements[0].id

    calls = {
        "summary": lambda: service.get_summary(travel.id, outsider.id),
        "save": lambda: service.save(travel.id, outsider.id),
        "complete": lambda: service.complete(travel.id, outsider.id, settlement_id),
        "statistics": lambda: service.get_statistics(travel.id, outsider.id),
    }
    with pytest.raises(PermissionDeniedError):
        calls[operation]()


def test_unknown_travel_is_not_found(db, make_user):
    with pytest.raises(NotFoundError):
        SettlementService(db).get_summary(999, make_user("Alice").id)


def test_completing_a_recommended_settlement_is_not_found(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db)
    recommended_id = service.get_summary(travel.id, a.id).recommended_settlements[0].id

    with pytest.raises(NotFoundError):
        service.complete(travel.id, a.id, recommended_id)


def test_recommended_diverges_from_saved_after_new_expense(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db)
    service.save(travel.id, a.id)

    add_expense(travel, a, Decimal("40"), [a, b])
    summary = service.get_summary(travel.id, a.id)

    assert [s.amount for s in summary.saved_settlements] == [Decimal("50.00")]
    assert [s.amount for s in summary.recommended_settlements] == [Decimal("70.00")]


def test_recommended_ids_are_fresh_each_request(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db)

    first = service.get_summary(travel.id, a.id).recommended_settlements[0].id
    second = service.get_summary(travel.id, a.id).recommended_settlements[0].id

    assert first != second


def test_members_without_name_render_as_unknown(db, make_user, make_travel, add_expense):
    a, ghost = make_user("Alice"), make_user("ghost", with_name=False)
    travel = make_travel([a, ghost])
    add_expense(travel, a, Decimal("10"), [a, ghost])

    summary = SettlementService(db).get_summary(travel.id, a.id)

    assert summary.recommended_settlements[0].from_member == UNKNOWN_MEMBER
    assert next(b for b in summary.balances if b.member_id == ghost.id).name is None


def test_summary_is_served_from_cache_until_invalidated(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db, cache=SummaryCache(InMemoryTTLCache(), ttl=60))

    first = service.get_summary(travel.id, a.id)
    assert service.get_summary(travel.id, a.id) is first

    after_save = service.save(travel.id, a.id)
    assert after_save is not first
    assert len(after_save.saved_settlements) == 1


def test_cache_is_checked_after_authorization(db, make_user, make_travel, add_expense):
    a, b, outsider = make_user("Alice"), make_user("Bob"), make_user("Mallory")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db, cache=SummaryCache(InMemoryTTLCache(), ttl=60))
    service.get_summary(travel.id, a.id)

    with pytest.raises(PermissionDeniedError):
        service.get_summary(travel.id, outsider.id)


def test_broken_cache_falls_back_to_computation(db, make_user, make_travel, add_expense):
    class BrokenBackend:
        def get(self, key):
            raise ConnectionError("cache down")

        def set(self, key, value, ttl):
            raise ConnectionError("cache down")

        def delete(self, key):
            raise ConnectionError("cache down")

    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])
    service = SettlementService(db, cache=SummaryCache(BrokenBackend(), ttl=60))

    summary = service.save(travel.id, a.id)

    assert len(summary.saved_settlements) == 1
    assert summary.recommended_settlements[0].amount == Decimal("50.00")


def test_statistics_through_service(db, make_user, make_travel, add_expense):
    a, b = make_user("Alice"), make_user("Bob")
    travel = make_travel([a, b])
    add_expense(travel, a, Decimal("100"), [a, b])

    stats = SettlementService(db).get_statistics(travel.id, a.id)

    assert stats.my_balance == Decimal("50.00")
    assert stats.balance_status == "receive"
    assert len(stats.member_balances) == 2
