"""Verification result models."""

from dataclasses import dataclass
from enum import Enum


class VerificationStatus(str, Enum):
    """Outcome of a single verification check."""

    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"
    INFO = "info"


# Console and run-log tag per status
_TAGS: dict[VerificationStatus, str] = {
    VerificationStatus.PASS: "OK",
    VerificationStatus.FAIL: "FAIL",
    VerificationStatus.SKIPPED: "INFO",
    VerificationStatus.INFO: "INFO",
}


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Result of comparing one expectation against the system.

    Produced fresh on every verify invocation and never persisted beyond
    the run log.

    Attributes:
        check_id: Resource id, runtime check id, or ``<id>:<substring>``.
        expected: What the catalog declares.
        actual: What was found on the system.
        status: Pass, fail, skipped or info.
        detail: Optional explanation (skip reason, pending reboot, ...).
    """

    check_id: str
    expected: str
    actual: str
    status: VerificationStatus
    detail: str | None = None

    @property
    def failed(self) -> bool:
        """Check if this expectation did not hold."""
        return self.status == VerificationStatus.FAIL

    @property
    def tag(self) -> str:
        """Status tag for the one-line report (OK, FAIL or INFO)."""
        return _TAGS[self.status]

    @property
    def message(self) -> str:
        """One-line description for status output."""
        if self.status == VerificationStatus.SKIPPED:
            return f"skipped: {self.detail or 'precondition unmet'}"
        text = f"expected {self.expected}, actual {self.actual}"
        return f"{text} ({self.detail})" if self.detail else text

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "check": self.check_id,
            "expected": self.expected,
            "actual": self.actual,
            "status": self.status.value,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


def has_failures(results: list[VerificationResult]) -> bool:
    """Check if any result in a verification pass failed."""
    return any(r.failed for r in results)
