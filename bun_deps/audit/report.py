"""Audit report returned by the npm bulk audit endpoint."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

SEVERITIES = ("critical", "high", "moderate", "low", "info")


@dataclass(frozen=True)
class Advisory:
    """A single advisory from the audit response."""

    id: str
    title: str
    url: str
    severity: str
    vulnerable_versions: str
    patched_versions: str
    module_name: str = ""

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "Advisory":
        return cls(
            id=str(data.get("id", key)),
            title=str(data.get("title", "")),
            url=str(data.get("url", "")),
            severity=str(data.get("severity", "info")).lower(),
            vulnerable_versions=str(data.get("vulnerable_versions", "")),
            patched_versions=str(data.get("patched_versions", "")),
            module_name=str(data.get("module_name", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "severity": self.severity,
            "module_name": self.module_name,
            "vulnerable_versions": self.vulnerable_versions,
            "patched_versions": self.patched_versions,
        }


@dataclass(frozen=True)
class VulnerabilityCounts:
    """Number of vulnerabilities per severity."""

    info: int = 0
    low: int = 0
    moderate: int = 0
    high: int = 0
    critical: int = 0

    @property
    def total(self) -> int:
        return self.info + self.low + self.moderate + self.high + self.critical

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VulnerabilityCounts":
        counts = {}
        for severity in SEVERITIES:
            try:
                counts[severity] = int(data.get(severity, 0) or 0)
            except (TypeError, ValueError):
                counts[severity] = 0
        return cls(**counts)

    def to_dict(self) -> Dict[str, int]:
        return {severity: getattr(self, severity) for severity in SEVERITIES}


@dataclass(frozen=True)
class AuditReport:
    """Parsed audit response."""

    advisories: List[Advisory] = field(default_factory=list)
    vulnerabilities: VulnerabilityCounts = field(default_factory=VulnerabilityCounts)

    @property
    def has_vulnerabilities(self) -> bool:
        return self.vulnerabilities.total > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "advisories": [advisory.to_dict() for advisory in self.advisories],
            "vulnerabilities": self.vulnerabilities.to_dict(),
            "total": self.vulnerabilities.total,
        }


def parse_audit_report(data: Any) -> AuditReport:
    """Parse the JSON body of an audit response.

    Missing or malformed sections are treated as empty.

    Args:
        data: Decoded JSON response

    Returns:
        Parsed report
    """
    if not isinstance(data, dict):
        return AuditReport()

    advisories = []
    raw_advisories = data.get("advisories")
    if isinstance(raw_advisories, dict):
        for key, raw in raw_advisories.items():
            if isinstance(raw, dict):
                advisories.append(Advisory.from_dict(str(key), raw))

    metadata = data.get("metadata")
    raw_counts = metadata.get("vulnerabilities") if isinstance(metadata, dict) else None
    counts = VulnerabilityCounts.from_dict(raw_counts if isinstance(raw_counts, dict) else {})

    return AuditReport(advisories=advisories, vulnerabilities=counts)
