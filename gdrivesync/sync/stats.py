"""Run counters and the error budget shared across one sync walk."""

import threading
from dataclasses import dataclass, field

DEFAULT_MAX_ERRORS = 10

STAT_LABELS: list[tuple[str, str]] = [
    ("checked_dirs", "Checked Dirs"),
    ("created_dirs", "Created Dirs"),
    ("deleted_dirs", "Deleted Dirs"),
    ("checked_files", "Checked Files"),
    ("downloaded_files", "Downloaded Files"),
    ("overwritten_files", "Overwritten Files"),
    ("deleted_files", "Deleted Files"),
    ("errors", "Errors"),
]

# "errors" is read from the budget, not incremented directly
_COUNTER_NAMES = {name for name, _ in STAT_LABELS} - {"errors"}


class ErrorBudget:
    """Counts recoverable errors and reports when the cap is exceeded.

    Examples:
        >>> budget = ErrorBudget(max_errors=1)
        >>> budget.register_error()
        False
        >>> budget.register_error()
        True
    """

    def __init__(self, max_errors: int = DEFAULT_MAX_ERRORS):
        self.max_errors = max_errors
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def exhausted(self) -> bool:
        return self._count > self.max_errors

    def register_error(self) -> bool:
        """Record one error.

        Returns:
            True if the count now exceeds the maximum and the run must abort
        """
        with self._lock:
            self._count += 1
            return self._count > self.max_errors


@dataclass
class RunStats:
    """Aggregate counters for one sync run.

    The error count lives in ``budget`` so there is a single source of truth
    for it.
    """

    budget: ErrorBudget = field(default_factory=ErrorBudget)
    checked_dirs: int = 0
    created_dirs: int = 0
    deleted_dirs: int = 0
    checked_files: int = 0
    downloaded_files: int = 0
    overwritten_files: int = 0
    deleted_files: int = 0

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def errors(self) -> int:
        return self.budget.count

    def increment(self, name: str) -> int:
        """Atomically increment a counter.

        Args:
            name: Counter attribute name (e.g. ``"checked_files"``)

        Returns:
            The counter value after the increment
        """
        if name not in _COUNTER_NAMES:
            raise ValueError(f"Unknown counter: {name}")
        with self._lock:
            value = getattr(self, name) + 1
            setattr(self, name, value)
            return value

    def register_error(self) -> bool:
        """Record one error; True means the error budget is exhausted."""
        return self.budget.register_error()

    def as_dict(self) -> dict[str, int]:
        """Return all counters keyed by attribute name."""
        return {name: getattr(self, name) for name, _ in STAT_LABELS}

    def summary_items(self) -> list[tuple[str, int]]:
        """Return ``(label, value)`` pairs in summary order."""
        return [(label, getattr(self, name)) for name, label in STAT_LABELS]
