"""Origins, dispatch errors and an in-memory balances ledger with locks and events."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any

from edenchain.arithmetic import U128_MAX


class DispatchError(Exception):
    """Base error raised by dispatchable calls."""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.args == other.args  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class BadOrigin(DispatchError):
    """The call was made from an origin that is not allowed."""

    def __init__(self) -> None:
        super().__init__("BadOrigin")


class BalancesError(DispatchError):
    """A balance operation was refused; ``reason`` names why."""

    INSUFFICIENT_BALANCE = "InsufficientBalance"
    EXISTENTIAL_DEPOSIT = "ExistentialDeposit"
    LIQUIDITY_RESTRICTIONS = "LiquidityRestrictions"
    KEEP_ALIVE = "KeepAlive"
    OVERFLOW = "Overflow"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class Origin:
    """Who a call comes from: a signed account, or root when ``signer`` is None."""

    signer: Hashable | None = None

    @classmethod
    def signed(cls, who: Hashable) -> Origin:
        if who is None:
            raise ValueError("a signed origin needs an account")
        return cls(signer=who)

    @classmethod
    def root(cls) -> Origin:
        return cls()

    @property
    def is_root(self) -> bool:
        return self.signer is None

    def ensure_signed(self) -> Hashable:
        """Return the signing account, or raise BadOrigin for root."""
        if self.signer is None:
            raise BadOrigin()
        return self.signer

    def ensure_root(self) -> None:
        """Raise BadOrigin unless this is the root origin."""
        if self.signer is not None:
            raise BadOrigin()


@dataclass(frozen=True)
class EnsureSignedBy:
    """Accepts origins signed by one of a fixed set of accounts."""

    members: frozenset = field(default_factory=frozenset)

    def __init__(self, members: Iterable[Hashable]) -> None:
        object.__setattr__(self, "members", frozenset(members))

    def try_origin(self, origin: Origin) -> bool:
        """Tell whether ``origin`` is signed by a member."""
        return origin.signer is not None and origin.signer in self.members

    def ensure_origin(self, origin: Origin) -> Hashable:
        """Return the member who signed, or raise BadOrigin."""
        if not self.try_origin(origin):
            raise BadOrigin()
        return origin.signer


@dataclass(frozen=True)
class BalanceLock:
    """A named lock freezing part of an account's free balance."""

    id: bytes
    amount: int


def pallet_account(pallet_id: bytes) -> int:
    """Derive the sovereign account of a pallet from its eight-byte identifier."""
    if len(pallet_id) != 8:
        raise ValueError("a pallet identifier has exactly eight bytes")
    return int.from_bytes((b"modl" + pallet_id)[:8], "little")


class Ledger:
    """Account balances, total issuance, locks, block number and event log."""

    def __init__(
        self,
        existential_deposit: int = 1,
        max_balance: int = U128_MAX,
        block_number: int = 1,
    ) -> None:
        if existential_deposit < 0 or max_balance < 0:
            raise ValueError("existential deposit and max balance must not be negative")
        self.existential_deposit = existential_deposit
        self.max_balance = max_balance
        self.block_number = block_number
        self.total_issuance = 0
        self.events: list[Any] = []
        self._free: dict[Hashable, int] = {}
        self._locks: dict[Hashable, dict[bytes, int]] = {}

    # Queries

    def free_balance(self, who: Hashable) -> int:
        return self._free.get(who, 0)

    def total_balance(self, who: Hashable) -> int:
        return self.free_balance(who)

    def usable_balance(self, who: Hashable) -> int:
        return max(self.free_balance(who) - self._frozen(who), 0)

    def locks(self, who: Hashable) -> list[BalanceLock]:
        return [BalanceLock(lock_id, amount) for lock_id, amount in self._locks.get(who, {}).items()]

    # Issuance

    def issue(self, amount: int) -> int:
        """Raise total issuance by ``amount`` (capped) and return what was issued."""
        self._check_amount(amount)
        issued = min(amount, self.max_balance - self.total_issuance)
        self.total_issuance += issued
        return issued

    def resolve_creating(self, who: Hashable, amount: int) -> None:
        """Credit issued funds to ``who``; funds that cannot be credited are burnt."""
        self._check_amount(amount)
        if amount == 0:
            return
        new_balance = self.free_balance(who) + amount
        creating = who not in self._free
        if (creating and amount < self.existential_deposit) or new_balance > self.max_balance:
            self.total_issuance -= amount
            return
        self._free[who] = new_balance

    def make_free_balance_be(self, who: Hashable, amount: int) -> None:
        """Force the free balance of ``who``, adjusting total issuance."""
        self._check_amount(amount)
        if amount > self.max_balance:
            raise BalancesError(BalancesError.OVERFLOW)
        if who not in self._free and amount < self.existential_deposit:
            return
        self.total_issuance += amount - self.free_balance(who)
        self._free[who] = amount
        self._reap_if_dust(who)

    # Movements

    def transfer(self, source: Hashable, dest: Hashable, amount: int, keep_alive: bool = False) -> None:
        """Move ``amount`` from ``source`` to ``dest``; state is untouched on failure."""
        self._check_amount(amount)
        if amount == 0 or source == dest:
            return
        source_free = self.free_balance(source)
        if amount > source_free:
            raise BalancesError(BalancesError.INSUFFICIENT_BALANCE)
        new_source = source_free - amount
        new_dest = self.free_balance(dest) + amount
        if new_dest > self.max_balance:
            raise BalancesError(BalancesError.OVERFLOW)
        if new_dest < self.existential_deposit:
            raise BalancesError(BalancesError.EXISTENTIAL_DEPOSIT)
        self._check_liquidity(source, new_source)
        if keep_alive and new_source < self.existential_deposit:
            raise BalancesError(BalancesError.KEEP_ALIVE)
        self._free[source] = new_source
        self._free[dest] = new_dest
        self._reap_if_dust(source)

    def ensure_can_withdraw(self, who: Hashable, amount: int) -> None:
        """Raise unless ``amount`` can leave ``who`` without breaking its locks."""
        self._check_amount(amount)
        if amount == 0:
            return
        free = self.free_balance(who)
        if amount > free:
            raise BalancesError(BalancesError.INSUFFICIENT_BALANCE)
        self._check_liquidity(who, free - amount)

    # Locks

    def set_lock(self, lock_id: bytes, who: Hashable, amount: int) -> None:
        """Create or replace lock ``lock_id``; a zero amount changes nothing."""
        self._check_amount(amount)
        if amount == 0:
            return
        self._locks.setdefault(who, {})[lock_id] = amount

    def remove_lock(self, lock_id: bytes, who: Hashable) -> None:
        account_locks = self._locks.get(who)
        if account_locks is None:
            return
        account_locks.pop(lock_id, None)
        if not account_locks:
            del self._locks[who]

    # Events

    def deposit_event(self, event: Any) -> None:
        """Record an event; nothing is recorded at block zero."""
        if self.block_number == 0:
            return
        self.events.append(event)

    def reset_events(self) -> None:
        self.events.clear()

    # Internals

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must not be negative, got {amount}")

    def _frozen(self, who: Hashable) -> int:
        return max(self._locks.get(who, {}).values(), default=0)

    def _check_liquidity(self, who: Hashable, new_balance: int) -> None:
        if new_balance < self._frozen(who):
            raise BalancesError(BalancesError.LIQUIDITY_RESTRICTIONS)

    def _reap_if_dust(self, who: Hashable) -> None:
        balance = self._free.get(who)
        if balance is not None and balance < self.existential_deposit:
            del self._free[who]
            self.total_issuance -= balance