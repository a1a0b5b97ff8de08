from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable


class Severity(str, Enum):
    FATAL = "fatal"
    WARNING = "warning"


class ExitStatus(IntEnum):
    SUCCESS = 0
    FAILURE = 1


@dataclass(frozen=True)
class Finding:
    severity: Severity
    message: str
    suggestion: str = ""


def fatal(message: str, suggestion: str = "") -> Finding:
    return Finding(Severity.FATAL, message, suggestion)


def warning(message: str, suggestion: str = "") -> Finding:
    return Finding(Severity.WARNING, message, suggestion)


@dataclass(frozen=True)
class CheckRecord:
    severity: Severity
    message: str
    suggestion: str
    sequence: int

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL


class ReportAggregator:
    """Append-only collection of check records for one run.

    Sequence numbers start at 1 and are assigned under a lock, so the
    background release check can append while the main flow evaluates.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[CheckRecord] = []

    def record(self, severity: Severity, message: str, suggestion: str = "") -> CheckRecord:
        with self._lock:
            entry = CheckRecord(
                severity=Severity(severity),
                message=message,
                suggestion=suggestion or "",
                sequence=len(self._records) + 1,
            )
            self._records.append(entry)
        return entry

    def add(self, finding: Finding | None) -> CheckRecord | None:
        if finding is None:
            return None
        return self.record(finding.severity, finding.message, finding.suggestion)

    def extend(self, findings: Iterable[Finding | None]) -> None:
        for finding in findings:
            self.add(finding)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def is_clean(self) -> bool:
        return len(self) == 0

    def render(self) -> tuple[CheckRecord, ...]:
        with self._lock:
            snapshot = list(self._records)
        # Fatal tier first; sequence keeps detection order inside a tier.
        return tuple(
            sorted(snapshot, key=lambda entry: (not entry.is_fatal, entry.sequence))
        )

    def decide(self) -> ExitStatus:
        return ExitStatus.SUCCESS if self.is_clean() else ExitStatus.FAILURE


def format_record(index: int, entry: CheckRecord) -> str:
    prefix = "FATAL: " if entry.is_fatal else ""
    line = f"{index:2d}. {prefix}{entry.message}"
    if entry.suggestion:
        line += f"\n > {entry.suggestion}"
    return line


def format_report(records: Iterable[CheckRecord]) -> list[str]:
    ordered = list(records)
    if not ordered:
        return []
    lines = ["", "Reports:"]
    for index, entry in enumerate(ordered, start=1):
        lines.append("")
        lines.append(format_record(index, entry))
    return lines
