"""Per-item and per-phase provisioning outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Outcome(str, Enum):
    """What happened to one item of a phase."""

    CREATED = "created"
    SKIPPED = "skipped"
    ERROR = "error"


GLYPHS = {
    Outcome.CREATED: "✅",
    Outcome.SKIPPED: "⏭️",
    Outcome.ERROR: "❌",
}


@dataclass
class ItemOutcome:
    """Outcome of one phase item, as shown in progress output."""

    index: int
    total: int
    label: str
    outcome: Outcome
    message: Optional[str] = None

    def format(self) -> str:
        """Progress line, e.g. "[3/23] 2026 Goals ✅"."""
        line = f"[{self.index}/{self.total}] {self.label} {GLYPHS[self.outcome]}"
        if self.message:
            line += f" ({self.message})"
        return line


@dataclass
class PhaseResult:
    """Result of running one phase (or phase 6 sub-step).

    Attributes:
        phase: Phase identifier ("1" .. "5", "6a" .. "6e")
        name: Human-readable phase name
        created: Items created (or updated) by this run
        skipped: Items that already existed
        errors: Items that failed
        already_complete: The completion probe short-circuited the phase
        error: Phase-level failure that aborted the item loop
        env_ids: (env_key, table_id) pairs resolved by phase 1
    """

    phase: str
    name: str
    created: int = 0
    skipped: int = 0
    errors: int = 0
    already_complete: bool = False
    error: Optional[str] = None
    env_ids: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True if the phase aborted or any item failed."""
        return self.error is not None or self.errors > 0

    def summary(self) -> str:
        """One-line summary of the counts."""
        if self.error is not None:
            return f"Phase {self.phase} ({self.name}) failed: {self.error}"
        text = (
            f"Phase {self.phase} ({self.name}): {self.created} created, "
            f"{self.skipped} skipped, {self.errors} errors"
        )
        if self.already_complete:
            text += " (already complete)"
        return text


class Reporter:
    """Receives progress events from the pipeline.

    The base class ignores everything; the CLI subclasses it to print.
    """

    def phase_started(self, phase: str, name: str) -> None:
        pass

    def item(self, outcome: ItemOutcome) -> None:
        pass

    def phase_finished(self, result: PhaseResult) -> None:
        pass
