# edenchain

An in-memory model of the token economics of a parachain runtime. Balances,
balance locks, total issuance, the current block number and the event log live
in a `Ledger`; the modules below act on it.

- `edenchain.ledger`: `Ledger`, `Origin` (`Origin.signed(who)`,
  `Origin.root()`), `EnsureSignedBy` for a fixed set of allowed signers,
  `BalanceLock`, `pallet_account()` to derive a module's account from its
  eight-byte identifier, and the errors `DispatchError`, `BadOrigin` and
  `BalancesError`.
- `edenchain.allocations`: `MintCurve`, which bounds how much the supply may
  inflate per session and per fiscal period, and `Allocations`, through which
  oracles mint batches of rewards within the session quota. A protocol fee is
  taken off each reward and sent to a fee receiver. Root can move the curve's
  starting block with `set_curve_starting_block`. Events:
  `SessionQuotaCalculated`, `SessionQuotaRenewed`.
- `edenchain.grants`: `VestingSchedule` and `Grants`, which adds vesting
  schedules (locking the granted funds on the receiver), lets receivers
  `claim` what has vested, lets the cancel origin or root
  `cancel_all_vesting_schedules` or `renounce` that right, and can set up
  grants at genesis with `build_genesis`. Events: `VestingScheduleAdded`,
  `Claimed`, `VestingSchedulesCanceled`, `Renounced`.
- `edenchain.reserve`: `Reserve`, a treasury account that can be tipped,
  spend funds, dispatch a call as itself (`apply_as`) and take in funds
  collected elsewhere (`on_nonzero_unbalanced`). Events: `Deposit`,
  `SpentFunds`, `TipReceived`, `ReserveOp`.
- `edenchain.mandate`: `Mandate`, which lets an external origin dispatch a
  call as root and records the outcome as a `RootOp` event.
- `edenchain.weights`: `Weight`, `RuntimeDbWeight` and the benchmarked
  weights of each call in `AllocationsWeights`, `GrantsWeights` and
  `ReserveWeights`.
- `edenchain.constants` and `edenchain.arithmetic`: currency and time units,
  `deposit()`, `Perbill`, `Perquintill` and saturating integer helpers.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Example

```python
from edenchain.arithmetic import Perbill
from edenchain.allocations import Allocations, MintCurve
from edenchain.ledger import Ledger, Origin

ledger = Ledger(existential_deposit=2, max_balance=2**64 - 1, block_number=1)
curve = MintCurve.new(3, 10, [Perbill.from_percent(1)], 1_000_000)
allocations = Allocations(
    ledger,
    curve,
    oracles={0},
    pallet_id=b"py/alloc",
    protocol_fee=Perbill.from_percent(10),
    fee_receiver=4,
    existential_deposit=2,
    max_allocs=10,
)

ledger.issue(100_000)
allocations.batch(Origin.signed(0), [(2, 50)])
print(ledger.free_balance(2))  # 45
print(ledger.free_balance(4))  # 5
```

## Errors and calls

Calls that would be refused raise an exception: `BadOrigin` for an origin
that may not make the call, `BalancesError` for a balance movement that cannot
happen, and `AllocationsError` or `GrantsError` for everything else, such as
an allocation that exceeds the session quota. Each of these errors carries a
`reason` string (except `BadOrigin`). When `Allocations.batch` or a `Grants`
call raises one of them, the ledger and the module are left as they were.

`Reserve.spend` and `Reserve.tip` record their event even when the transfer
itself fails. The calls given to `Reserve.apply_as` and `Mandate.apply` are
callables taking an `Origin`; a `weight` attribute on the callable, if it is a
`Weight`, is added to the weight charged, and a `DispatchError` they raise is
recorded in the event rather than passed on.

## What this package does not do

It runs nothing on a network: there is no node, no command-line program, no
consensus, no block production and no RPC. State is held in memory only and is
not stored anywhere. Block numbers advance only when you set
`Ledger.block_number` yourself.