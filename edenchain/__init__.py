"""In-memory model of a parachain's token economics: ledger, allocations, grants, reserve and mandate."""

__version__ = "0.1.0"
__all__ = ["allocations", "arithmetic", "constants", "grants", "ledger", "mandate", "reserve", "weights"]