"""Vesting grants: funds wired to an account and unlocked gradually over periods."""

from __future__ import annotations

import copy
from collections.abc import Hashable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from edenchain.arithmetic import U32_MAX, U64_MAX, saturating_add, saturating_sub
from edenchain.ledger import DispatchError, EnsureSignedBy, Ledger, Origin
from edenchain.weights import GrantsWeights, Weight

VESTING_LOCK_ID = b"nvesting"

# Upper bound of block numbers when checking schedule ends for overflow.
_BLOCK_NUMBER_MAX = U64_MAX


class GrantsError(DispatchError):
    """A grants call was refused; ``reason`` names why."""

    ZERO_VESTING_PERIOD = "ZeroVestingPeriod"
    ZERO_VESTING_PERIOD_COUNT = "ZeroVestingPeriodCount"
    NUM_OVERFLOW = "NumOverflow"
    INSUFFICIENT_BALANCE_TO_LOCK = "InsufficientBalanceToLock"
    EMPTY_SCHEDULES = "EmptySchedules"
    VESTING_TO_SELF = "VestingToSelf"
    MAX_SCHEDULE_OVERFLOW = "MaxScheduleOverflow"
    RENOUNCED = "Renounced"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class VestingSchedule:
    """``per_period`` is unlocked every ``period`` blocks after ``start``, ``period_count`` times."""

    start: int
    period: int
    period_count: int
    per_period: int

    def __post_init__(self) -> None:
        for name in ("start", "period", "per_period"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if not 0 <= self.period_count <= U32_MAX:
            raise ValueError("period_count must fit in 32 unsigned bits")

    def end(self, max_value: int) -> int | None:
        """Block at which every period has elapsed, or None past ``max_value``."""
        result = self.period * self.period_count + self.start
        return None if result > max_value else result

    def total_amount(self, max_value: int) -> int | None:
        """Whole amount granted, or None past ``max_value``."""
        result = self.per_period * self.period_count
        return None if result > max_value else result

    def locked_amount(self, time: int) -> int:
        """Amount still locked at block ``time``; the period must not be zero."""
        if self.period == 0:
            raise ValueError("vesting period must not be zero")
        full = saturating_sub(time, self.start) // self.period
        unrealized = saturating_sub(self.period_count, min(full, U32_MAX))
        return self.per_period * unrealized


@dataclass(frozen=True)
class VestingScheduleAdded:
    """A vesting schedule was added from ``from_`` to ``to``."""

    from_: Hashable
    to: Hashable
    schedule: VestingSchedule


@dataclass(frozen=True)
class Claimed:
    """``who`` claimed vested funds; ``locked_amount`` is still locked."""

    who: Hashable
    locked_amount: int


@dataclass(frozen=True)
class VestingSchedulesCanceled:
    """Every vesting schedule of ``who`` was canceled."""

    who: Hashable


@dataclass(frozen=True)
class Renounced:
    """The right to cancel ``who``'s grants was given up."""

    who: Hashable


class Grants:
    """Holds vesting schedules and the balance locks that enforce them."""

    def __init__(
        self,
        ledger: Ledger,
        cancel_origin: EnsureSignedBy,
        max_schedule: int,
        weights: GrantsWeights | None = None,
    ) -> None:
        self.ledger = ledger
        self.cancel_origin = cancel_origin
        self.max_schedule = max_schedule
        self.weights = weights if weights is not None else GrantsWeights()
        self._schedules: dict[Hashable, list[VestingSchedule]] = {}
        self._renounced: set[Hashable] = set()

    # Queries

    def vesting_schedules(self, who: Hashable) -> list[VestingSchedule]:
        """The schedules of ``who``, empty when there are none."""
        return list(self._schedules.get(who, ()))

    def renounced(self, who: Hashable) -> bool:
        """Tell whether the cancel origin gave up its rights over ``who``."""
        return who in self._renounced

    # Calls

    def claim(self, origin: Origin) -> Weight:
        """Unlock whatever has vested so far for the signer; return the weight charged."""
        who = origin.ensure_signed()
        with self._transactional():
            locked_amount = self._do_claim(who)
            if locked_amount == 0:
                self._schedules.pop(who, None)
            self.ledger.deposit_event(Claimed(who, locked_amount))
        return self.weights.claim()

    def add_vesting_schedule(self, origin: Origin, dest: Hashable, schedule: VestingSchedule) -> Weight:
        """Wire funds from the signer to ``dest``, vested along ``schedule``."""
        from_ = origin.ensure_signed()
        with self._transactional():
            self._do_add_vesting_schedule(from_, dest, schedule)
            self.ledger.deposit_event(VestingScheduleAdded(from_, dest, schedule))
        return self.weights.add_vesting_schedule()

    def cancel_all_vesting_schedules(self, origin: Origin, who: Hashable, funds_collector: Hashable) -> Weight:
        """Auto-claim for ``who`` and send the still-locked funds to ``funds_collector``."""
        self._ensure_cancel_origin(origin)
        if self.renounced(who):
            raise GrantsError(GrantsError.RENOUNCED)
        with self._transactional():
            locked_amount_left = self._do_claim(who)
            collectable_funds = min(locked_amount_left, self.ledger.free_balance(who))
            # The lock goes first so the transfer is not blocked by it.
            self.ledger.remove_lock(VESTING_LOCK_ID, who)
            self.ledger.transfer(who, funds_collector, collectable_funds, keep_alive=False)
            self._schedules.pop(who, None)
            self.ledger.deposit_event(VestingSchedulesCanceled(who))
        return self.weights.cancel_all_vesting_schedules()

    def renounce(self, origin: Origin, who: Hashable) -> Weight:
        """Give up the right to cancel ``who``'s vesting schedules."""
        self._ensure_cancel_origin(origin)
        self._renounced.add(who)
        self.ledger.deposit_event(Renounced(who))
        return self.weights.renounce()

    def build_genesis(
        self, vesting: Iterable[tuple[Hashable, Sequence[tuple[int, int, int, int]]]]
    ) -> None:
        """Create grants at genesis from ``(who, [(start, period, count, per_period), ...])``."""
        for who, raw_schedules in vesting:
            schedules = [VestingSchedule(*raw) for raw in raw_schedules]
            if len(schedules) > self.max_schedule:
                raise ValueError("genesis vesting schedules overflow the maximum")
            total_grants = 0
            for schedule in schedules:
                total_grants = saturating_add(total_grants, schedule.locked_amount(0), self.ledger.max_balance)
            self.ledger.resolve_creating(who, self.ledger.issue(total_grants))
            self.ledger.set_lock(VESTING_LOCK_ID, who, total_grants)
            self._schedules[who] = schedules

    # Internals

    def _ensure_cancel_origin(self, origin: Origin) -> None:
        if not self.cancel_origin.try_origin(origin):
            origin.ensure_root()

    def _do_claim(self, who: Hashable) -> int:
        locked = self._locked_balance(who)
        if locked == 0:
            self.ledger.remove_lock(VESTING_LOCK_ID, who)
        else:
            self.ledger.set_lock(VESTING_LOCK_ID, who, locked)
        return locked

    def _locked_balance(self, who: Hashable) -> int:
        now = self.ledger.block_number
        total = sum(schedule.locked_amount(now) for schedule in self._schedules.get(who, ()))
        if total > self.ledger.max_balance:
            raise OverflowError("locked amount exceeds the balance type")
        return total

    def _do_add_vesting_schedule(self, from_: Hashable, to: Hashable, schedule: VestingSchedule) -> None:
        if from_ == to:
            raise GrantsError(GrantsError.VESTING_TO_SELF)
        schedule_amount = self._ensure_valid_vesting_schedule(schedule)
        total_amount = self._locked_balance(to) + schedule_amount
        if total_amount > self.ledger.max_balance:
            raise GrantsError(GrantsError.NUM_OVERFLOW)

        current = self._schedules.get(to, [])
        if len(current) >= self.max_schedule:
            raise GrantsError(GrantsError.MAX_SCHEDULE_OVERFLOW)
        self.ledger.transfer(from_, to, schedule_amount, keep_alive=False)
        self.ledger.set_lock(VESTING_LOCK_ID, to, total_amount)
        self._schedules[to] = [*current, schedule]

    def _ensure_valid_vesting_schedule(self, schedule: VestingSchedule) -> int:
        if schedule.period == 0:
            raise GrantsError(GrantsError.ZERO_VESTING_PERIOD)
        if schedule.period_count == 0:
            raise GrantsError(GrantsError.ZERO_VESTING_PERIOD_COUNT)
        if schedule.end(_BLOCK_NUMBER_MAX) is None:
            raise GrantsError(GrantsError.NUM_OVERFLOW)
        amount = schedule.total_amount(self.ledger.max_balance)
        if amount is None:
            raise GrantsError(GrantsError.NUM_OVERFLOW)
        return amount

    @contextmanager
    def _transactional(self) -> Iterator[None]:
        """Undo every storage and ledger change if a dispatch error escapes."""
        saved_schedules = {who: list(items) for who, items in self._schedules.items()}
        saved_renounced = set(self._renounced)
        saved_ledger = copy.deepcopy(vars(self.ledger))
        try:
            yield
        except DispatchError:
            self._schedules = saved_schedules
            self._renounced = saved_renounced
            ledger_state = vars(self.ledger)
            ledger_state.clear()
            ledger_state.update(saved_ledger)
            raise