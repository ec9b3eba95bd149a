"""Sync modes and result codes."""

from enum import Enum, IntEnum


class SyncMode(str, Enum):
    """Direction of a sync run.

    Only ``ONE_WAY_TO_LOCAL`` is implemented; the other modes are recognized
    so they can be rejected with a clear message.
    """

    ONE_WAY_TO_LOCAL = "oneWayToLocal"
    """Mirror the remote tree into the local directory"""

    ONE_WAY_TO_REMOTE = "oneWayToRemote"
    """Mirror the local directory into the remote tree"""

    TWO_WAY = "twoWay"
    """Propagate changes in both directions"""

    @property
    def is_implemented(self) -> bool:
        return self is SyncMode.ONE_WAY_TO_LOCAL

    @classmethod
    def from_string(cls, value: str) -> "SyncMode":
        """Parse a mode name or its abbreviation (case-insensitive).

        Raises:
            ValueError: If the value names no known mode
        """
        normalized = value.strip().lower()
        for mode in cls:
            if normalized == mode.value.lower():
                return mode
        abbreviations = {
            "otl": cls.ONE_WAY_TO_LOCAL,
            "mirror": cls.ONE_WAY_TO_LOCAL,
            "otr": cls.ONE_WAY_TO_REMOTE,
            "tw": cls.TWO_WAY,
        }
        if normalized in abbreviations:
            return abbreviations[normalized]

        valid = ", ".join(mode.value for mode in cls)
        raise ValueError(f"Unknown sync mode '{value}'. Valid modes: {valid}")


class SyncResult(IntEnum):
    """Outcome of a sync run; the value is the process exit code."""

    SUCCESS = 0
    INVALID_ARGUMENTS = 1
    INVALID_CONFIGURATION = 2
    FAILED = 3


class WalkOutcome(Enum):
    """Result of reconciling one directory subtree."""

    OK = "ok"
    """Every directory in the subtree was processed without failure"""

    RECOVERED = "recovered"
    """At least one directory failed and was counted as an error"""

    ABORT = "abort"
    """The error budget is exhausted; the whole walk must stop"""

    def merge(self, other: "WalkOutcome") -> "WalkOutcome":
        """Combine two outcomes, keeping the most severe."""
        order = [WalkOutcome.OK, WalkOutcome.RECOVERED, WalkOutcome.ABORT]
        return max(self, other, key=order.index)
