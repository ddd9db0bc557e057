"""Exception hierarchy for the lattice gas simulator."""

from __future__ import annotations


class LatticeGasError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(LatticeGasError, ValueError):
    """Invalid run parameters. Raised before any simulation work starts."""


class AllocationError(LatticeGasError, MemoryError):
    """Backing storage for a lattice, registry or measurement array is unavailable."""

    def __init__(self, name: str, nbytes: int) -> None:
        self.name = name
        self.nbytes = nbytes
        super().__init__(
            f"Memory allocation failed for '{name}' ({nbytes} bytes)"
        )


class OutputError(LatticeGasError, OSError):
    """The output destination could not be written."""


class InvariantError(LatticeGasError, AssertionError):
    """A consistency check on the lattice state failed."""
