"""Error types raised by the extraction and aggregation pipeline.

Every error carries a ``context`` dict (site, dataset, file, variable, ...)
so a failed batch run can be diagnosed from the log alone. Inner layers set
what they know (file, variable); the pipeline adds site and dataset on the
way out with :meth:`PointMetError.add_context`.
"""

from __future__ import annotations

from typing import Any


class PointMetError(Exception):
    """Base class for pipeline errors that abort one dataset for one site."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def add_context(self, **context: Any) -> "PointMetError":
        """Attach context without overwriting keys set closer to the failure."""
        for key, value in context.items():
            if value is not None and key not in self.context:
                self.context[key] = value
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} [{ctx}]"


class GridLookupError(PointMetError):
    """Point is outside the grid or falls on more than one cell."""


class TimestampError(PointMetError):
    """File label cannot be parsed, or its step count disagrees with the frequency."""


class LengthMismatchError(PointMetError):
    """Extracted series length differs from the reconstructed timestamp count."""


class AssemblyError(PointMetError):
    """A required variable is missing or timestamps collide after assembly."""


class IrregularYearError(PointMetError):
    """Aggregation input is not one complete calendar year."""


if __name__ == '__main__':
    pass
# ========================= EOF ====================================================================
