"""
Unit lifecycle state management for MarkGuard.

When a document is transformed cell by cell, every translation unit carries an
explicit state instead of being inferred from whether its text changed.

Architecture:
    UnitLifecycle (Enum) → Represents WHERE the unit is in the pipeline
    SkipReason (Dataclass) → Represents WHY a unit was not transformed (if applicable)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class UnitLifecycle(str, Enum):
    """
    Represents the lifecycle state of a translation unit.

    State Transition Flow:
        PENDING → [TRANSLATED | SKIPPED | FALLBACK | DRY_RUN_SIMULATED]

    """

    PENDING = "pending"
    """Unit was split out of the document but not yet processed."""

    SKIPPED = "skipped"
    """Unit had nothing the transform could change (empty or fully protected)."""

    TRANSLATED = "translated"
    """Unit was transformed and restored."""

    FALLBACK = "fallback"
    """The transform failed for this unit; its original text was kept."""

    DRY_RUN_SIMULATED = "dry_run_simulated"
    """Unit was processed in dry-run mode (no actual transform call made)."""


@dataclass(frozen=True)
class SkipReason:
    """
    Represents why a unit was not transformed.

    Attributes:
        category: The high-level category of the skip reason.
        code: A machine-readable identifier for the specific reason.
        message: A human-readable explanation (optional, for logging/debugging).

    """

    category: Literal["validation", "optimization", "error", "mode"]
    """
    The category of the skip reason:
    - validation: Nothing to transform (e.g., empty text)
    - optimization: Skipped because the result is known (e.g., fully protected)
    - error: The transform failed and the unit fell back to its original text
    - mode: Skipped due to execution mode (e.g., dry-run)
    """

    code: str
    """Machine-readable identifier (e.g., 'empty', 'protected', 'transport')."""

    message: str | None = None
    """Human-readable explanation for logging/debugging."""

    def __str__(self) -> str:
        """Return a human-readable representation of the skip reason."""
        if self.message:
            return f"{self.category}:{self.code} ({self.message})"
        return f"{self.category}:{self.code}"


SKIP_EMPTY = SkipReason(
    category="validation",
    code="empty",
    message="Empty or whitespace-only text",
)
"""Skip reason for empty or whitespace-only units."""

SKIP_FULLY_PROTECTED = SkipReason(
    category="optimization",
    code="protected",
    message="Unit contains only protected spans",
)
"""Skip reason for units whose every character is protected (e.g., a cell holding only inline code)."""

FALLBACK_TRANSPORT_ERROR = SkipReason(
    category="error",
    code="transport",
    message="Transform call failed; original text kept",
)
"""Reason recorded when a unit falls back to its original text after a transport error."""

SKIP_DRY_RUN = SkipReason(
    category="mode",
    code="dry_run",
    message="Skipped due to dry-run execution mode",
)
"""Skip reason for units in dry-run mode (no actual transform performed)."""
