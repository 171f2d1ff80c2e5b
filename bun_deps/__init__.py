"""bun-deps - inspect a Bun lockfile: why a package is installed, and what the audit endpoint says about it."""

__version__ = "0.1.0"

from .core.attributor import DependencyAttributor
from .core.audit_tree import AuditTreeBuilder
from .core.parser import BunLockfileParser, MalformedLockfileError
from .audit.client import NpmAuditClient
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "DependencyAttributor",
    "AuditTreeBuilder",
    "BunLockfileParser",
    "MalformedLockfileError",
    "NpmAuditClient",
    "ConsoleFormatter",
    "JSONFormatter",
]
