"""Verification outcome models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class VerificationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CommandOutput:
    """What an external command returned."""

    exit_code: int
    output: str = ""


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one verification command."""

    name: str
    exit_code: Optional[int]  # None when the command was unavailable
    output: str = ""
    skipped: bool = False

    @property
    def passed(self) -> bool:
        return not self.skipped and self.exit_code == 0


@dataclass(frozen=True)
class VerificationOutcome:
    """Aggregate outcome of an ordered command list."""

    status: VerificationStatus
    detail: str = ""
    checks: Tuple[CheckResult, ...] = ()

    @classmethod
    def passing(cls, checks: Tuple[CheckResult, ...] = (), detail: str = "") -> "VerificationOutcome":
        return cls(status=VerificationStatus.PASS, detail=detail, checks=checks)

    @classmethod
    def failing(cls, detail: str, checks: Tuple[CheckResult, ...] = ()) -> "VerificationOutcome":
        return cls(status=VerificationStatus.FAIL, detail=detail, checks=checks)

    @classmethod
    def skipped_because(cls, reason: str, checks: Tuple[CheckResult, ...] = ()) -> "VerificationOutcome":
        return cls(status=VerificationStatus.SKIPPED, detail=reason, checks=checks)

    @property
    def passed(self) -> bool:
        return self.status == VerificationStatus.PASS

    @property
    def failed(self) -> bool:
        return self.status == VerificationStatus.FAIL

    @property
    def skipped(self) -> bool:
        return self.status == VerificationStatus.SKIPPED
