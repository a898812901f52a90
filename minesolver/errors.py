"""Failures the exact solver can report instead of a move."""


class SolverError(RuntimeError):
    """Base class for every failure raised by the exact solver."""


class ContradictionError(SolverError):
    """The visible numbers admit no mine placement at all."""


class IntractableError(SolverError):
    """Exact counting would exceed the configured work bounds."""


class SolveCancelled(SolverError):
    """The caller requested cancellation through the progress channel."""
