from __future__ import annotations

from enum import Enum


class Severity(Enum):
    """
    Semantic severity level for log entries.

    Values follow the remote logging protocol's numeric ladder so
    that ordering and wire representation agree.
    """

    DEFAULT = 0         # No assigned severity
    DEBUG = 100         # Developer-focused diagnostic information
    INFO = 200          # Normal system operation
    NOTICE = 300        # Normal but significant event
    WARNING = 400       # Unexpected but recoverable condition
    ERROR = 500         # Operation failed, system continued
    CRITICAL = 600      # Severe failure, system integrity at risk
    ALERT = 700         # Someone must act immediately
    EMERGENCY = 800     # One or more systems are unusable

    def __str__(self) -> str:
        return self.name

    def __lt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.value < other.value

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """
        Resolve a severity from its name, case-insensitively.

        WARN is accepted as an alias of WARNING.
        """
        name = (text or "").strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown severity: {text!r}") from None
