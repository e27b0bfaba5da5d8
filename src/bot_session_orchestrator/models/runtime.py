"""Bot runtime status models."""

from enum import Enum


class ProcessStatus(str, Enum):
    """Provisioning status of a bot process.

    These values mirror what the runtime status endpoint reports.
    """

    UNKNOWN = "unknown"
    RELOADING = "reloading"
    CONNECTED = "connected"
    PUBLISHED = "published"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str | None) -> "ProcessStatus":
        """Parse a raw status string, mapping anything unrecognized to UNKNOWN.

        Args:
            value: Raw status reported by the runtime.

        Returns:
            Matching ProcessStatus.
        """
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN
