"""Execution weights of the allocations, grants and reserve calls."""

from __future__ import annotations

from dataclasses import dataclass

from edenchain.arithmetic import U64_MAX, saturating_add, saturating_mul

WEIGHT_REF_TIME_PER_NANOS = 1_000


def _check_u64(name: str, value: int) -> None:
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} must fit in 64 unsigned bits, got {value}")


@dataclass(frozen=True, order=True)
class Weight:
    """Computation time and proof size consumed by a call."""

    ref_time: int = 0
    proof_size: int = 0

    def __post_init__(self) -> None:
        _check_u64("ref_time", self.ref_time)
        _check_u64("proof_size", self.proof_size)

    def saturating_add(self, other: Weight) -> Weight:
        """Add component-wise, stopping at the 64-bit maximum."""
        return Weight(
            saturating_add(self.ref_time, other.ref_time, U64_MAX),
            saturating_add(self.proof_size, other.proof_size, U64_MAX),
        )

    def saturating_mul(self, factor: int) -> Weight:
        """Scale both components, stopping at the 64-bit maximum."""
        _check_u64("factor", factor)
        return Weight(
            saturating_mul(self.ref_time, factor, U64_MAX),
            saturating_mul(self.proof_size, factor, U64_MAX),
        )


@dataclass(frozen=True)
class RuntimeDbWeight:
    """Cost of one storage read and one storage write."""

    read: int = 0
    write: int = 0

    def __post_init__(self) -> None:
        _check_u64("read", self.read)
        _check_u64("write", self.write)

    def reads(self, count: int) -> Weight:
        """Weight of ``count`` storage reads."""
        _check_u64("count", count)
        return Weight(saturating_mul(self.read, count, U64_MAX), 0)

    def writes(self, count: int) -> Weight:
        """Weight of ``count`` storage writes."""
        _check_u64("count", count)
        return Weight(saturating_mul(self.write, count, U64_MAX), 0)


ZERO_DB_WEIGHT = RuntimeDbWeight(0, 0)
ROCKS_DB_WEIGHT = RuntimeDbWeight(
    read=25_000 * WEIGHT_REF_TIME_PER_NANOS,
    write=100_000 * WEIGHT_REF_TIME_PER_NANOS,
)


@dataclass(frozen=True)
class _BenchmarkedWeights:
    db_weight: RuntimeDbWeight = ROCKS_DB_WEIGHT

    def _fixed(self, ref_time: int, reads: int, writes: int) -> Weight:
        return (
            Weight(ref_time, 0)
            .saturating_add(self.db_weight.reads(reads))
            .saturating_add(self.db_weight.writes(writes))
        )


@dataclass(frozen=True)
class AllocationsWeights(_BenchmarkedWeights):
    """Benchmarked weights of the allocations calls."""

    def allocate(self, b: int) -> Weight:
        """Weight of allocating a batch of ``b`` grants."""
        _check_u64("b", b)
        return (
            Weight(21_410_078, 0)
            .saturating_add(Weight(27_848_716, 0).saturating_mul(b))
            .saturating_add(self.db_weight.reads(8))
            .saturating_add(self.db_weight.reads(saturating_mul(1, b, U64_MAX)))
            .saturating_add(self.db_weight.writes(6))
            .saturating_add(self.db_weight.writes(saturating_mul(1, b, U64_MAX)))
        )

    def calc_quota(self) -> Weight:
        return self._fixed(23_380_000, 7, 5)

    def renew_quota(self) -> Weight:
        return self._fixed(19_320_000, 7, 5)

    def checked_update_session_quota(self) -> Weight:
        return self._fixed(34_910_000, 9, 7)

    def set_curve_starting_block(self) -> Weight:
        return self._fixed(11_130_000, 1, 3)


@dataclass(frozen=True)
class GrantsWeights(_BenchmarkedWeights):
    """Benchmarked weights of the grants calls."""

    def add_vesting_schedule(self) -> Weight:
        return self._fixed(82_800_000, 9, 6)

    def claim(self) -> Weight:
        return self._fixed(55_120_000, 8, 4)

    def cancel_all_vesting_schedules(self) -> Weight:
        return self._fixed(111_970_000, 11, 7)

    def renounce(self) -> Weight:
        return self._fixed(21_240_000, 4, 3)


@dataclass(frozen=True)
class ReserveWeights(_BenchmarkedWeights):
    """Benchmarked weights of the reserve calls."""

    def tip(self) -> Weight:
        return self._fixed(27_550_000, 6, 2)

    def spend(self) -> Weight:
        return self._fixed(27_670_000, 6, 2)