# results.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class FailureKind(str, Enum):
    CONNECTIVITY = "connectivity"
    FETCH = "fetch"
    CELL = "cell"
    HEADERS = "headers"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    reason: str
    location: str = ""

    def describe(self) -> str:
        where = f" at {self.location}" if self.location else ""
        return f"{self.kind.value} failure{where}: {self.reason}"


@dataclass(frozen=True)
class CellWrite:
    row: int
    column: str
    value: int | str

    @property
    def cell(self) -> str:
        return f"{self.column}{self.row}"


@dataclass
class ScanReport:
    writes: List[CellWrite] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class Outcome:
    ok: bool
    failure: Failure | None = None

    @classmethod
    def success(cls) -> "Outcome":
        return cls(ok=True)

    @classmethod
    def failed(cls, kind: FailureKind, reason: str, location: str = "") -> "Outcome":
        return cls(ok=False, failure=Failure(kind=kind, reason=reason, location=location))
