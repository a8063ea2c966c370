"""A reserve holding pooled funds, spendable only by a designated origin or root."""

from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from edenchain.ledger import DispatchError, EnsureSignedBy, Ledger, Origin, pallet_account
from edenchain.weights import ReserveWeights, Weight

# Extra weight charged on top of a forwarded call's own weight.
APPLY_OVERHEAD = Weight(10_000, 0)

Call = Callable[[Origin], Any]


@dataclass(frozen=True)
class Deposit:
    """Funds were deposited into the reserve, for example from transaction fees."""

    amount: int


@dataclass(frozen=True)
class SpentFunds:
    """Funds were spent from the reserve to ``to``."""

    to: Hashable
    amount: int


@dataclass(frozen=True)
class TipReceived:
    """``who`` tipped the reserve."""

    who: Hashable
    amount: int


@dataclass(frozen=True)
class ReserveOp:
    """A call was dispatched from the reserve account; ``error`` is None on success."""

    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _call_weight(call: Call) -> Weight:
    """Declared weight of ``call`` plus the forwarding overhead."""
    declared = getattr(call, "weight", None)
    base = declared if isinstance(declared, Weight) else Weight()
    return base.saturating_add(APPLY_OVERHEAD)


class Reserve:
    """Holds funds in a pallet account; spending needs the external origin or root."""

    def __init__(
        self,
        ledger: Ledger,
        external_origin: EnsureSignedBy,
        pallet_id: bytes,
        weights: ReserveWeights | None = None,
    ) -> None:
        self.ledger = ledger
        self.external_origin = external_origin
        self.pallet_id = pallet_id
        self.weights = weights if weights is not None else ReserveWeights()
        self.account_id = pallet_account(pallet_id)

    def spend(self, origin: Origin, to: Hashable, amount: int) -> Weight:
        """Send ``amount`` from the reserve to ``to``; a failed transfer is ignored."""
        self._ensure_external_or_root(origin)
        try:
            self.ledger.transfer(self.account_id, to, amount, keep_alive=True)
        except DispatchError:
            pass
        self.ledger.deposit_event(SpentFunds(to, amount))
        return self.weights.spend()

    def tip(self, origin: Origin, amount: int) -> Weight:
        """Deposit ``amount`` from the signer into the reserve; a failed transfer is ignored."""
        tipper = origin.ensure_signed()
        try:
            self.ledger.transfer(tipper, self.account_id, amount, keep_alive=False)
        except DispatchError:
            pass
        self.ledger.deposit_event(TipReceived(tipper, amount))
        return self.weights.tip()

    def apply_as(self, origin: Origin, call: Call) -> Weight:
        """Dispatch ``call`` as signed by the reserve account and record its outcome."""
        self._ensure_external_or_root(origin)
        try:
            call(Origin.signed(self.account_id))
        except DispatchError as error:
            self.ledger.deposit_event(ReserveOp(error))
        else:
            self.ledger.deposit_event(ReserveOp(None))
        return _call_weight(call)

    def on_nonzero_unbalanced(self, amount: int) -> None:
        """Credit funds that were taken elsewhere, such as fees, to the reserve."""
        self.ledger.resolve_creating(self.account_id, amount)
        self.ledger.deposit_event(Deposit(amount))

    def build_genesis(self) -> None:
        """Make sure the reserve account holds at least the existential deposit."""
        minimum = self.ledger.existential_deposit
        if self.ledger.free_balance(self.account_id) < minimum:
            self.ledger.make_free_balance_be(self.account_id, minimum)

    def _ensure_external_or_root(self, origin: Origin) -> None:
        if not self.external_origin.try_origin(origin):
            origin.ensure_root()