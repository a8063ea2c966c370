"""Lets a designated external origin dispatch calls with root privileges."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from edenchain.ledger import DispatchError, EnsureSignedBy, Ledger, Origin
from edenchain.weights import Weight

# Extra weight charged on top of a forwarded call's own weight.
APPLY_OVERHEAD = Weight(10_000, 0)

Call = Callable[[Origin], Any]


@dataclass(frozen=True)
class RootOp:
    """A root operation was executed; ``error`` is None on success."""

    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Mandate:
    """Forwards calls from the external origin as root."""

    def __init__(self, ledger: Ledger, external_origin: EnsureSignedBy) -> None:
        self.ledger = ledger
        self.external_origin = external_origin

    def apply(self, origin: Origin, call: Call) -> Weight:
        """Dispatch ``call`` as root and record its outcome; return the weight charged."""
        self.external_origin.ensure_origin(origin)
        try:
            call(Origin.root())
        except DispatchError as error:
            self.ledger.deposit_event(RootOp(error))
        else:
            self.ledger.deposit_event(RootOp(None))
        declared = getattr(call, "weight", None)
        base = declared if isinstance(declared, Weight) else Weight()
        return base.saturating_add(APPLY_OVERHEAD)