"""Evidence records and the verdict derived from them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class Severity(Enum):
    """Severity of a single piece of evidence."""
    PASS = "pass"
    WARNING = "warning"
    FATAL = "fatal"


class CheckName(Enum):
    """Checks in evidence order."""
    AUTHORITY = "authority"
    OWNERSHIP = "ownership"
    LIQUIDITY = "liquidity"


@dataclass(frozen=True)
class Evidence:
    """One finding emitted by a check."""

    check: CheckName
    severity: Severity
    message: str

    @property
    def is_red_flag(self) -> bool:
        return self.severity is not Severity.PASS

    def format(self) -> str:
        """Render as ``[SEVERITY] message``."""
        return f"[{self.severity.name}] {self.message}"

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "check": self.check.value,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass
class Verdict:
    """
    Honeypot verdict for a token.

    The verdict is never stored on its own: ``is_honeypot`` is recomputed
    from the evidence every time it is read. A single WARNING or FATAL item
    anywhere condemns the token.
    """

    token_address: str
    base_token_address: str
    evidence: List[Evidence] = field(default_factory=list)

    @property
    def is_honeypot(self) -> bool:
        return any(item.is_red_flag for item in self.evidence)

    @property
    def reasons(self) -> List[str]:
        return [item.format() for item in self.evidence]

    def by_severity(self, severity: Severity) -> List[Evidence]:
        """Get evidence items of one severity, in emission order."""
        return [item for item in self.evidence if item.severity is severity]

    def by_check(self, check: CheckName) -> List[Evidence]:
        """Get evidence items emitted by one check."""
        return [item for item in self.evidence if item.check is check]

    def get_summary(self) -> str:
        """Get human-readable summary."""
        if not self.evidence:
            return "No checks performed"

        warnings = len(self.by_severity(Severity.WARNING))
        fatals = len(self.by_severity(Severity.FATAL))
        if not self.is_honeypot:
            return f"✅ No honeypot indicators ({len(self.evidence)} checks passed)"
        return f"🚨 Likely honeypot ({warnings} warnings, {fatals} failed checks)"

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "token_address": self.token_address,
            "base_token_address": self.base_token_address,
            "is_honeypot": self.is_honeypot,
            "reasons": self.reasons,
            "evidence": [item.to_dict() for item in self.evidence],
            "summary": self.get_summary(),
        }
