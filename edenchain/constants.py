"""Monetary, timing and weight constants of the chain, plus primitive type limits."""

from __future__ import annotations

from edenchain.arithmetic import U32_MAX, U64_MAX, U128_MAX, Perbill, Perquintill

# Primitive type limits.
BLOCK_NUMBER_MAX = U32_MAX
BALANCE_MAX = U128_MAX
MOMENT_MAX = U64_MAX
TIMESTAMP_MAX = U64_MAX
INDEX_MAX = U32_MAX

# Money matters.
NODL = 100_000_000_000
MILLI_NODL = NODL // 1_000
MICRO_NODL = MILLI_NODL // 1_000
NANO_NODL = MICRO_NODL // 1_000

EXISTENTIAL_DEPOSIT = 100 * NANO_NODL


def deposit(items: int, bytes_: int) -> int:
    """Storage deposit for ``items`` entries occupying ``bytes_`` bytes."""
    for name, value in (("items", items), ("bytes_", bytes_)):
        if not 0 <= value <= U32_MAX:
            raise ValueError(f"{name} must fit in 32 unsigned bits, got {value}")
    return items * 1_500 * MICRO_NODL + bytes_ * 600 * MICRO_NODL


# Time and blocks.
MILLISECS_PER_BLOCK = 12_000
SLOT_DURATION = MILLISECS_PER_BLOCK

MINUTES = 60_000 // MILLISECS_PER_BLOCK
HOURS = MINUTES * 60
DAYS = HOURS * 24

EPOCH_DURATION_IN_BLOCKS = 4 * HOURS
EPOCH_DURATION_IN_SLOTS = int(EPOCH_DURATION_IN_BLOCKS * (MILLISECS_PER_BLOCK / SLOT_DURATION))

MILLISECS_PER_RELAY_CHAIN_BLOCK = MILLISECS_PER_BLOCK // 2
MINUTES_RELAY_CHAIN = 60_000 // MILLISECS_PER_RELAY_CHAIN_BLOCK
HOURS_RELAY_CHAIN = MINUTES_RELAY_CHAIN * 60
DAYS_RELAY_CHAIN = HOURS_RELAY_CHAIN * 24

# 1 in 4 blocks will be primary blocks, on average.
PRIMARY_PROBABILITY = (1, 4)

# Fee-related.
TARGET_BLOCK_FULLNESS = Perquintill.from_percent(25)
NORMAL_DISPATCH_RATIO = Perbill.from_percent(75)
AVERAGE_ON_INITIALIZE_RATIO = Perbill.from_percent(10)

WEIGHT_REF_TIME_PER_SECOND = 1_000_000_000_000
MAX_POV_SIZE = 5 * 1024 * 1024

# Half a second of compute per block, bounded by the proof-of-validity size.
MAXIMUM_BLOCK_REF_TIME = WEIGHT_REF_TIME_PER_SECOND // 2
MAXIMUM_BLOCK_PROOF_SIZE = MAX_POV_SIZE
NORMAL_MAXIMUM_REF_TIME = NORMAL_DISPATCH_RATIO * MAXIMUM_BLOCK_REF_TIME
OPERATIONAL_RESERVED_REF_TIME = MAXIMUM_BLOCK_REF_TIME - NORMAL_MAXIMUM_REF_TIME

if NORMAL_DISPATCH_RATIO.deconstruct() < AVERAGE_ON_INITIALIZE_RATIO.deconstruct():
    raise AssertionError("normal dispatch ratio must cover the on-initialize ratio")

CONTRACTS_DEBUG_OUTPUT = True