"""Oracle-driven token allocations bounded by an inflation mint curve."""

from __future__ import annotations

import copy
from collections.abc import Container, Hashable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from edenchain.arithmetic import (
    U64_MAX,
    Perbill,
    saturating_add,
    saturating_mul,
    saturating_sub,
)
from edenchain.ledger import DispatchError, Ledger, Origin, pallet_account
from edenchain.weights import AllocationsWeights, Weight

# Upper bound used when block-number arithmetic saturates.
_BLOCK_NUMBER_MAX = U64_MAX

# Most accounts that may act as oracles for benchmarking purposes.
MAX_BENCHMARK_ORACLES = 10

_STORAGE_FIELDS = (
    "session_quota",
    "next_session_quota",
    "quota_renew_schedule",
    "quota_calc_schedule",
    "mint_curve_starting_block",
    "storage_version",
)


class Releases(Enum):
    """Storage layout versions of the allocations state."""

    V0 = "V0"
    V1 = "V1"

    @classmethod
    def default(cls) -> Releases:
        return cls.V0


class AllocationsError(DispatchError):
    """An allocation call was refused; ``reason`` names why."""

    ORACLE_ACCESS_DENIED = "OracleAccessDenied"
    ALLOCATION_EXCEEDS_SESSION_QUOTA = "AllocationExceedsSessionQuota"
    DOES_NOT_SATISFY_EXISTENTIAL_DEPOSIT = "DoesNotSatisfyExistentialDeposit"
    BATCH_EMPTY = "BatchEmpty"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class SessionQuotaRenewed:
    """The session quota was refilled at the start of a new session."""


@dataclass(frozen=True)
class SessionQuotaCalculated:
    """A new session quota was calculated; it applies from the next session."""

    amount: int


@dataclass(frozen=True)
class PostDispatchInfo:
    """What a call reports after running: its actual weight and whether it pays fees."""

    actual_weight: Weight | None = None
    pays_fee: bool = True


@dataclass(frozen=True)
class MintCurve:
    """Upper bound on how much the token supply may inflate per session."""

    session_period: int
    fiscal_period: int
    inflation_steps: tuple[Perbill, ...]
    maximum_supply: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "inflation_steps", tuple(self.inflation_steps))

    @classmethod
    def new(
        cls,
        session_period: int,
        fiscal_period: int,
        inflation_steps: Sequence[Perbill],
        maximum_supply: int,
    ) -> MintCurve:
        """Build a curve whose session period is at least one block and whose
        fiscal period is at least one session."""
        valid_session_period = max(session_period, 1)
        valid_fiscal_period = max(fiscal_period, valid_session_period)
        return cls(valid_session_period, valid_fiscal_period, tuple(inflation_steps), maximum_supply)

    def calc_session_quota(self, n: int, curve_start: int, current_supply: int) -> int:
        """Quota that may be allocated during one session at block ``n``."""
        elapsed = saturating_sub(n, curve_start)
        step = elapsed // self.fiscal_period if self.fiscal_period else _BLOCK_NUMBER_MAX
        if step < len(self.inflation_steps):
            max_inflation_rate = self.inflation_steps[step]
        elif self.inflation_steps:
            max_inflation_rate = self.inflation_steps[-1]
        else:
            max_inflation_rate = Perbill(0)
        target_increase = min(
            saturating_sub(self.maximum_supply, current_supply),
            max_inflation_rate * current_supply,
        )
        return Perbill.from_rational(self.session_period, self.fiscal_period) * target_increase

    def next_quota_renew_schedule(self, n: int, curve_start: int) -> int:
        """The next block at which the session quota is refilled."""
        return self.next_schedule(n, curve_start, self.session_period)

    def next_quota_calc_schedule(self, n: int, curve_start: int) -> int:
        """The next block at which the session quota is recalculated."""
        return self.next_schedule(n, curve_start, self.fiscal_period)

    @staticmethod
    def next_schedule(n: int, curve_start: int, period: int) -> int:
        """The first period boundary, aligned on ``curve_start``, strictly after ``n``."""
        if n >= curve_start:
            periods = (n - curve_start) // period if period else _BLOCK_NUMBER_MAX
            boundary = saturating_mul(saturating_add(periods, 1, _BLOCK_NUMBER_MAX), period, _BLOCK_NUMBER_MAX)
            return saturating_add(boundary, curve_start, _BLOCK_NUMBER_MAX)
        periods = (curve_start - n) // period if period else _BLOCK_NUMBER_MAX
        schedule = saturating_sub(curve_start, saturating_mul(periods, period, _BLOCK_NUMBER_MAX))
        if n == schedule:
            return saturating_add(n, period, _BLOCK_NUMBER_MAX)
        return schedule


class Allocations:
    """Lets oracles mint batches of rewards within a per-session quota."""

    def __init__(
        self,
        ledger: Ledger,
        mint_curve: MintCurve,
        oracles: Container[Hashable],
        pallet_id: bytes,
        protocol_fee: Perbill,
        fee_receiver: Hashable,
        existential_deposit: int,
        max_allocs: int,
        weights: AllocationsWeights | None = None,
    ) -> None:
        self.ledger = ledger
        self.mint_curve = mint_curve
        self.oracles = oracles
        self.pallet_id = pallet_id
        self.protocol_fee = protocol_fee
        self.fee_receiver = fee_receiver
        self.existential_deposit = existential_deposit
        self.max_allocs = max_allocs
        self.weights = weights if weights is not None else AllocationsWeights()
        self.account_id = pallet_account(pallet_id)
        self.benchmark_oracles: list[Hashable] = []

        self.storage_version = Releases.default()
        self.session_quota = 0
        self.next_session_quota = 0
        self.quota_renew_schedule = 0
        self.quota_calc_schedule = 0
        self.mint_curve_starting_block: int | None = None

    # Calls

    def is_oracle(self, who: Hashable) -> bool:
        """Tell whether ``who`` may submit allocation batches."""
        return who in self.oracles or who in self.benchmark_oracles

    def add_benchmark_oracle(self, who: Hashable) -> None:
        """Grant oracle rights used for benchmarking; the list is bounded."""
        if len(self.benchmark_oracles) >= MAX_BENCHMARK_ORACLES:
            raise ValueError(f"at most {MAX_BENCHMARK_ORACLES} benchmark oracles are allowed")
        self.benchmark_oracles.append(who)

    def batch(self, origin: Origin, batch: Sequence[tuple[Hashable, int]]) -> PostDispatchInfo:
        """Allocate a batch of ``(account, amount)`` rewards; oracles pay no fees."""
        self._ensure_oracle(origin)
        self._check_bound(batch)
        with self._transactional():
            update_weight = self.checked_update_session_quota()
            self.allocate(batch)
        actual = update_weight.saturating_add(self.weights.allocate(len(batch)))
        return PostDispatchInfo(actual_weight=actual, pays_fee=False)

    def set_curve_starting_block(self, origin: Origin, curve_start: int) -> PostDispatchInfo:
        """Root only: set the block the mint curve starts from and reschedule."""
        origin.ensure_root()
        self.mint_curve_starting_block = curve_start
        n = self.ledger.block_number
        self._update_calculation_schedule(n, curve_start)
        self._update_renew_schedule(n, curve_start)
        return PostDispatchInfo(actual_weight=None, pays_fee=False)

    # Core logic

    def allocate(self, batch: Sequence[tuple[Hashable, int]]) -> None:
        """Mint the batch within the session quota and pay grantees and the fee receiver."""
        self._check_bound(batch)
        if not batch:
            raise AllocationsError(AllocationsError.BATCH_EMPTY)

        min_alloc = saturating_mul(self.existential_deposit, 2, self.ledger.max_balance)
        full_issuance = 0
        for _account, amount in batch:
            if amount < min_alloc:
                raise AllocationsError(AllocationsError.DOES_NOT_SATISFY_EXISTENTIAL_DEPOSIT)
            full_issuance += amount
            if full_issuance > self.ledger.max_balance:
                raise AllocationsError(AllocationsError.ALLOCATION_EXCEEDS_SESSION_QUOTA)

        if full_issuance > self.session_quota:
            raise AllocationsError(AllocationsError.ALLOCATION_EXCEEDS_SESSION_QUOTA)
        self.session_quota = saturating_sub(self.session_quota, full_issuance)

        self.ledger.resolve_creating(self.account_id, self.ledger.issue(full_issuance))

        full_protocol = 0
        for account, amount in batch:
            amount_for_protocol = self.protocol_fee * amount
            amount_for_grantee = saturating_sub(amount, amount_for_protocol)
            self.ledger.transfer(self.account_id, account, amount_for_grantee, keep_alive=True)
            full_protocol = saturating_add(full_protocol, amount_for_protocol, self.ledger.max_balance)

        self.ledger.transfer(self.account_id, self.fee_receiver, full_protocol, keep_alive=False)

    def checked_update_session_quota(self) -> Weight:
        """Recalculate and/or renew the quota when their schedules are due; return the weight."""
        n = self.ledger.block_number
        read_block_number_weight = self.weights.db_weight.reads(1)
        calc_weight = self.checked_calc_session_quota(n)
        renew_weight = self.checked_renew_session_quota(n)
        return read_block_number_weight.saturating_add(calc_weight).saturating_add(renew_weight)

    def checked_calc_session_quota(self, n: int) -> Weight:
        """Recalculate the next session quota once per fiscal period; return the weight."""
        if n < self.quota_calc_schedule:
            return self.weights.db_weight.reads(1)
        curve_start = self._curve_start_or(n)
        self._update_calculation_schedule(n, curve_start)
        quota = self.mint_curve.calc_session_quota(n, curve_start, self.ledger.total_issuance)
        self.next_session_quota = quota
        self.ledger.deposit_event(SessionQuotaCalculated(quota))
        return self.weights.calc_quota()

    def checked_renew_session_quota(self, n: int) -> Weight:
        """Refill the session quota once per session; return the weight."""
        if n < self.quota_renew_schedule:
            return self.weights.db_weight.reads(1)
        curve_start = self._curve_start_or(n)
        self._update_renew_schedule(n, curve_start)
        self.session_quota = self.next_session_quota
        self.ledger.deposit_event(SessionQuotaRenewed())
        return self.weights.renew_quota()

    # Internals

    def _ensure_oracle(self, origin: Origin) -> None:
        sender = origin.ensure_signed()
        if not self.is_oracle(sender):
            raise AllocationsError(AllocationsError.ORACLE_ACCESS_DENIED)

    def _check_bound(self, batch: Sequence[tuple[Hashable, int]]) -> None:
        if len(batch) > self.max_allocs:
            raise ValueError(f"a batch holds at most {self.max_allocs} allocations")

    def _update_calculation_schedule(self, n: int, curve_start: int) -> None:
        self.quota_calc_schedule = self.mint_curve.next_quota_calc_schedule(n, curve_start)

    def _update_renew_schedule(self, n: int, curve_start: int) -> None:
        self.quota_renew_schedule = self.mint_curve.next_quota_renew_schedule(n, curve_start)

    def _curve_start_or(self, n: int) -> int:
        if self.mint_curve_starting_block is None:
            self.mint_curve_starting_block = n
        return self.mint_curve_starting_block

    @contextmanager
    def _transactional(self) -> Iterator[None]:
        """Undo every storage and ledger change if a dispatch error escapes."""
        saved_storage = {name: getattr(self, name) for name in _STORAGE_FIELDS}
        saved_ledger = copy.deepcopy(vars(self.ledger))
        try:
            yield
        except DispatchError:
            for name, value in saved_storage.items():
                setattr(self, name, value)
            ledger_state = vars(self.ledger)
            ledger_state.clear()
            ledger_state.update(saved_ledger)
            raise