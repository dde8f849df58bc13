"""Result models shared by all image checks."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class CheckStatus(str, Enum):
    """Tri-state outcome of a check or of one of its findings."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {CheckStatus.PASS: 0, CheckStatus.WARN: 1, CheckStatus.FAIL: 2}


def worst(statuses: List[CheckStatus]) -> CheckStatus:
    """Most severe status in a list, PASS for an empty one."""
    return max(statuses, key=lambda s: s.severity, default=CheckStatus.PASS)


class Finding(BaseModel):
    """One line item of a check: a path, a library, a binary."""

    subject: str
    status: CheckStatus
    message: str
    details: List[str] = Field(default_factory=list)


class CheckResult(BaseModel):
    """Outcome of a single check."""

    name: str
    status: CheckStatus = CheckStatus.PASS
    findings: List[Finding] = Field(default_factory=list)
    duration_ms: int = 0

    @classmethod
    def from_findings(cls, name: str, findings: List[Finding]) -> "CheckResult":
        return cls(name=name, status=worst([f.status for f in findings]), findings=findings)

    @property
    def failed(self) -> bool:
        return self.status is CheckStatus.FAIL


class ValidationReport(BaseModel):
    """
    Ordered check results for one validation run.

    The verdict is FAIL if any check failed; warnings never fail the run.
    """

    image: str
    timeout_seconds: int
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    results: List[CheckResult] = Field(default_factory=list)

    def add(self, result: CheckResult) -> None:
        self.results.append(result)

    @property
    def verdict(self) -> CheckStatus:
        if any(r.failed for r in self.results):
            return CheckStatus.FAIL
        return CheckStatus.PASS

    @property
    def passed(self) -> bool:
        return self.verdict is CheckStatus.PASS

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def failures(self) -> List[Finding]:
        return [f for r in self.results for f in r.findings if f.status is CheckStatus.FAIL]

    def warnings(self) -> List[Finding]:
        return [f for r in self.results for f in r.findings if f.status is CheckStatus.WARN]

    def to_dict(self) -> dict:
        payload = self.model_dump(mode="json")
        payload["verdict"] = self.verdict.value
        return payload
