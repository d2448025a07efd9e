from dataclasses import dataclass, field
from typing import Dict

from cloudlog.log_severity import Severity


@dataclass(frozen=True)
class LogEntry:
    """
    Unit handed to the remote backend.

    Only severity and payload travel with an entry. Timestamps,
    trace ids and common labels are attached by the remote side.
    """

    severity: Severity = Severity.INFO
    # Semantic importance of the event.

    payload: Dict[str, str] = field(default_factory=dict)
    # Structured body. Always carries the "msg" key when built
    # through cloudlog.payload.build_payload.

    @property
    def message(self) -> str:
        return self.payload.get("msg", "")
