"""npm registry audit client for bun-deps."""

from .client import (
    AuditConfig,
    AuditEndpointUnavailableError,
    AuditError,
    AuditRequestError,
    NpmAuditClient,
    run_audit,
)
from .report import Advisory, AuditReport, VulnerabilityCounts, parse_audit_report

__all__ = [
    "AuditConfig",
    "AuditEndpointUnavailableError",
    "AuditError",
    "AuditRequestError",
    "NpmAuditClient",
    "run_audit",
    "Advisory",
    "AuditReport",
    "VulnerabilityCounts",
    "parse_audit_report",
]
