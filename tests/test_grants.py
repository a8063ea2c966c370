import pytest

from edenchain.arithmetic import U64_MAX
from edenchain.grants import (
    VESTING_LOCK_ID,
    Claimed,
    Grants,
    GrantsError,
    Renounced,
    VestingSchedule,
    VestingScheduleAdded,
    VestingSchedulesCanceled,
)
from edenchain.ledger import BadOrigin, BalanceLock, BalancesError, EnsureSignedBy, Ledger, Origin
from edenchain.weights import GrantsWeights

ALICE = 1
BOB = 2
CANCEL = 42


def build(alice_balance=None, max_schedule=2):
    ledger = Ledger(existential_deposit=1, max_balance=U64_MAX, block_number=1)
    if alice_balance is not None:
        ledger.make_free_balance_be(ALICE, alice_balance)
    grants = Grants(ledger, EnsureSignedBy([CANCEL]), max_schedule)
    return ledger, grants


def balances(ledger, who):
    free = ledger.free_balance(who)
    return free, free - ledger.usable_balance(who)


def context_events(ledger):
    kinds = (VestingScheduleAdded, Claimed, VestingSchedulesCanceled, Renounced)
    return [event for event in ledger.events if isinstance(event, kinds)]


def test_schedule_helpers():
    schedule = VestingSchedule(0, 10, 2, 10)
    assert schedule.end(U64_MAX) == 20
    assert schedule.total_amount(U64_MAX) == 20
    assert schedule.locked_amount(0) == 20
    assert schedule.locked_amount(11) == 10
    assert schedule.locked_amount(25) == 0
    assert VestingSchedule(U64_MAX, 1, 2, 1).end(U64_MAX) is None
    assert VestingSchedule(1, 1, 2, U64_MAX).total_amount(U64_MAX) is None


def test_locked_amount_rejects_zero_period():
    with pytest.raises(ValueError):
        VestingSchedule(0, 0, 1, 1).locked_amount(5)


def test_add_vesting_schedule_works():
    ledger, grants = build(100)
    schedule = VestingSchedule(0, 10, 1, 100)
    weight = grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert weight == GrantsWeights().add_vesting_schedule()
    assert grants.vesting_schedules(BOB) == [schedule]
    assert VestingScheduleAdded(ALICE, BOB, schedule) in ledger.events


def test_add_new_vesting_schedule_merges_with_current_locked_balance_and_until():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))
    ledger.block_number = 12
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(10, 13, 1, 7))
    assert ledger.locks(BOB)[-1] == BalanceLock(VESTING_LOCK_ID, 17)


def test_cannot_use_fund_if_not_claimed():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(10, 10, 1, 50))
    with pytest.raises(BalancesError) as info:
        ledger.ensure_can_withdraw(BOB, 1)
    assert info.value.reason == BalancesError.LIQUIDITY_RESTRICTIONS


def test_add_vesting_schedule_fails_if_zero_period_or_count():
    _, grants = build(100)
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(1, 0, 1, 100))
    assert info.value.reason == GrantsError.ZERO_VESTING_PERIOD
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(1, 1, 0, 100))
    assert info.value.reason == GrantsError.ZERO_VESTING_PERIOD_COUNT


def test_add_vesting_schedule_fails_if_transfer_err():
    ledger, grants = build(100)
    with pytest.raises(BalancesError) as info:
        grants.add_vesting_schedule(Origin.signed(BOB), ALICE, VestingSchedule(1, 1, 1, 100))
    assert info.value.reason == BalancesError.INSUFFICIENT_BALANCE
    assert grants.vesting_schedules(ALICE) == []
    assert ledger.free_balance(ALICE) == 100


def test_add_vesting_schedule_fails_if_overflow():
    _, grants = build(100)
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(1, 1, 2, U64_MAX))
    assert info.value.reason == GrantsError.NUM_OVERFLOW
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(U64_MAX, 1, 2, 1))
    assert info.value.reason == GrantsError.NUM_OVERFLOW


def test_claim_works():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))

    ledger.block_number = 11
    with pytest.raises(BalancesError):
        ledger.transfer(BOB, ALICE, 10)
    grants.claim(Origin.signed(BOB))
    ledger.transfer(BOB, ALICE, 10)
    assert ledger.free_balance(BOB) == 10
    with pytest.raises(BalancesError):
        ledger.transfer(BOB, ALICE, 1)
    assert grants.vesting_schedules(BOB) != []
    assert Claimed(BOB, 10) in ledger.events

    ledger.block_number = 21
    grants.claim(Origin.signed(BOB))
    ledger.transfer(BOB, ALICE, 10)
    assert ledger.free_balance(BOB) == 0
    assert grants.vesting_schedules(BOB) == []
    assert ledger.locks(BOB) == []


def test_claim_requires_signed_origin():
    _, grants = build(100)
    with pytest.raises(BadOrigin):
        grants.claim(Origin.root())


def test_cancel_restricted_origin():
    _, grants = build()
    with pytest.raises(BadOrigin):
        grants.cancel_all_vesting_schedules(Origin.signed(ALICE), BOB, CANCEL)


def test_cancel_auto_claim_recipient_funds_and_wire_the_rest():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))
    ledger.block_number = 11
    grants.cancel_all_vesting_schedules(Origin.signed(CANCEL), BOB, CANCEL)
    ledger.transfer(BOB, ALICE, 10)
    ledger.transfer(CANCEL, ALICE, 10)
    assert ledger.free_balance(ALICE) == 100
    assert ledger.free_balance(BOB) == 0
    assert ledger.free_balance(CANCEL) == 0


def test_cancel_clears_storage():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))
    ledger.block_number = 11
    grants.cancel_all_vesting_schedules(Origin.signed(CANCEL), BOB, CANCEL)
    assert grants.vesting_schedules(BOB) == []


def test_cancel_by_root_is_allowed():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))
    grants.cancel_all_vesting_schedules(Origin.root(), BOB, CANCEL)
    assert ledger.free_balance(CANCEL) == 20
    assert ledger.free_balance(BOB) == 0


def test_cancel_tolerates_corrupted_state():
    ledger, grants = build(100)
    alice_schedule = VestingSchedule(0, 10, 2, 10)

    assert balances(ledger, ALICE) == (100, 0)
    assert ledger.total_balance(ALICE) == 100
    assert balances(ledger, BOB) == (0, 0)
    assert balances(ledger, CANCEL) == (0, 0)
    assert grants.vesting_schedules(BOB) == []

    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, alice_schedule)
    expected = [VestingScheduleAdded(ALICE, BOB, VestingSchedule(0, 10, 2, 10))]
    assert context_events(ledger) == expected
    assert balances(ledger, ALICE) == (80, 0)
    assert ledger.total_balance(ALICE) == 80
    assert balances(ledger, BOB) == (20, 20)
    assert ledger.total_balance(BOB) == 20
    assert balances(ledger, CANCEL) == (0, 0)

    # A schedule without any funds behind it simulates a corrupted state.
    corrupted = VestingSchedule(0, 10, 2, 1_000)
    grants._schedules[BOB].append(corrupted)
    assert grants.vesting_schedules(BOB) == [alice_schedule, corrupted]

    ledger.block_number = 11
    grants.cancel_all_vesting_schedules(Origin.signed(CANCEL), BOB, CANCEL)
    assert grants.vesting_schedules(BOB) == []

    expected.append(VestingSchedulesCanceled(BOB))
    assert context_events(ledger) == expected
    assert balances(ledger, ALICE) == (80, 0)
    assert balances(ledger, BOB) == (0, 0)
    assert ledger.total_balance(BOB) == 0
    assert balances(ledger, CANCEL) == (20, 0)
    assert ledger.total_balance(CANCEL) == 20


def test_cannot_vest_to_self():
    ledger, grants = build(100)
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), ALICE, VestingSchedule(0, 10, 1, 100))
    assert info.value.reason == GrantsError.VESTING_TO_SELF
    assert ledger.free_balance(ALICE) == 100
    assert context_events(ledger) == []


def test_add_vesting_schedule_overflow_check():
    ledger, grants = build(1000)
    schedule = VestingSchedule(0, 10, 1, 100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert len(grants.vesting_schedules(BOB)) == 1
    assert context_events(ledger) == [VestingScheduleAdded(ALICE, BOB, schedule)]

    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert len(grants.vesting_schedules(BOB)) == 2
    assert context_events(ledger) == [VestingScheduleAdded(ALICE, BOB, schedule)] * 2

    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert info.value.reason == GrantsError.MAX_SCHEDULE_OVERFLOW
    assert len(grants.vesting_schedules(BOB)) == 2
    assert ledger.free_balance(ALICE) == 800


def test_add_vesting_schedule_overflow_cfg_min_check():
    ledger, grants = build(1000, max_schedule=0)
    schedule = VestingSchedule(0, 10, 1, 100)
    assert grants.vesting_schedules(BOB) == []
    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert info.value.reason == GrantsError.MAX_SCHEDULE_OVERFLOW
    assert grants.vesting_schedules(BOB) == []
    assert context_events(ledger) == []

    grants.max_schedule = 1
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert len(grants.vesting_schedules(BOB)) == 1
    assert context_events(ledger) == [VestingScheduleAdded(ALICE, BOB, schedule)]


def test_add_vesting_schedule_overflow_cfg_max_check():
    schedule_max = 500
    ledger, grants = build(10_000_000, max_schedule=schedule_max)
    schedule = VestingSchedule(0, 10, 1, 100)
    for index in range(schedule_max):
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
        assert len(grants.vesting_schedules(BOB)) == index + 1
        assert len(context_events(ledger)) == index + 1

    with pytest.raises(GrantsError) as info:
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    assert info.value.reason == GrantsError.MAX_SCHEDULE_OVERFLOW
    assert len(grants.vesting_schedules(BOB)) == schedule_max
    assert len(context_events(ledger)) == schedule_max


def test_renounce_only_works_for_cancel_origin():
    _, grants = build()
    with pytest.raises(BadOrigin):
        grants.renounce(Origin.signed(ALICE), BOB)
    assert grants.renounced(BOB) is False


def test_renounce_privileges():
    ledger, grants = build(100)
    grants.add_vesting_schedule(Origin.signed(ALICE), BOB, VestingSchedule(0, 10, 2, 10))
    assert grants.renounced(BOB) is False
    grants.renounce(Origin.signed(CANCEL), BOB)
    assert grants.renounced(BOB) is True
    assert Renounced(BOB) in ledger.events
    with pytest.raises(GrantsError) as info:
        grants.cancel_all_vesting_schedules(Origin.signed(CANCEL), BOB, CANCEL)
    assert info.value.reason == GrantsError.RENOUNCED
    assert ledger.free_balance(BOB) == 20
    assert len(grants.vesting_schedules(BOB)) == 1


def test_claim_at_max_schedules_unlocks_nothing_before_start():
    ledger, grants = build(100, max_schedule=2)
    schedule = VestingSchedule(0, 10, 2, 1)
    for _ in range(2):
        grants.add_vesting_schedule(Origin.signed(ALICE), BOB, schedule)
    grants.claim(Origin.signed(BOB))
    assert ledger.locks(BOB) == [BalanceLock(VESTING_LOCK_ID, 4)]
    assert Claimed(BOB, 4) in ledger.events


def test_build_genesis_issues_and_locks():
    ledger, grants = build()
    grants.build_genesis([(BOB, [(0, 10, 2, 10)])])
    assert ledger.free_balance(BOB) == 20
    assert ledger.total_issuance == 20
    assert ledger.locks(BOB) == [BalanceLock(VESTING_LOCK_ID, 20)]
    assert grants.vesting_schedules(BOB) == [VestingSchedule(0, 10, 2, 10)]


def test_build_genesis_rejects_too_many_schedules():
    _, grants = build(max_schedule=2)
    with pytest.raises(ValueError):
        grants.build_genesis([(BOB, [(0, 10, 1, 1)] * 3)])
    assert grants.vesting_schedules(BOB) == []