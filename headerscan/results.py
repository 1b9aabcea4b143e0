from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Iterator, Dict
import enum


class Action(enum.Enum):
    """
    What fix mode did to a file.
    """
    NONE = "none"
    INSERTED = "inserted"
    REPLACED = "replaced"


class Status(enum.Enum):
    """
    Final state of a file once the run is over.
    """
    EXCLUDED = "excluded"
    COMPLIANT = "compliant"
    VIOLATING = "violating"
    FIXED = "fixed"
    ERROR = "error"

    @property
    def is_failure(self) -> bool:
        return self in (Status.VIOLATING, Status.ERROR)


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of checking a single file.
    """
    path: str
    covered: bool
    compliant: bool = False
    action: Action = Action.NONE
    error: str | None = None

    @classmethod
    def excluded(cls, path: str) -> 'ScanResult':
        return cls(path, covered=False)

    @classmethod
    def failed(cls, path: str, reason: str) -> 'ScanResult':
        return cls(path, covered=True, error=reason)

    @property
    def status(self) -> Status:
        if not self.covered:
            return Status.EXCLUDED
        if self.error is not None:
            return Status.ERROR
        if self.action is not Action.NONE:
            return Status.FIXED if self.compliant else Status.VIOLATING
        return Status.COMPLIANT if self.compliant else Status.VIOLATING

    @property
    def label(self) -> str:
        if self.status is Status.ERROR:
            return f"error:{self.error}"
        return self.status.value


@dataclass
class ScanReport:
    """
    Results of one run. Collected by a single thread, sorted by path on read.
    """
    results: List[ScanResult] = field(default_factory=list)
    interrupted: bool = False

    def append(self, result: ScanResult) -> None:
        self.results.append(result)

    def extend(self, results: List[ScanResult] | 'ScanReport') -> None:
        if isinstance(results, ScanReport):
            self.results.extend(results.results)
            self.interrupted = self.interrupted or results.interrupted
        else:
            self.results.extend(results)

    def __iter__(self) -> Iterator[ScanResult]:
        return iter(sorted(self.results, key=lambda r: r.path))

    def __len__(self) -> int:
        return len(self.results)

    def counts(self) -> Dict[Status, int]:
        counts = {status: 0 for status in Status}
        for result in self.results:
            counts[result.status] += 1
        return counts

    @property
    def failed(self) -> bool:
        return any(result.status.is_failure for result in self.results)
