"""Client for the npm registry bulk audit endpoint."""

import asyncio
import platform
import ssl
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
import certifi
from aiohttp import ClientTimeout

from .report import AuditReport, parse_audit_report
from ..core.audit_tree import AuditTree
from ..utils.logging import get_logger

DEFAULT_REGISTRY = "https://registry.npmjs.org"
AUDIT_PATH = "/-/npm/v1/security/audits"

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
}


class AuditError(RuntimeError):
    """Raised when the audit request does not produce a report."""


class AuditEndpointUnavailableError(AuditError):
    """Raised when the registry has no audit endpoint (HTTP 404)."""


class AuditRequestError(AuditError):
    """Raised on transport failures and unexpected status codes."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _node_arch() -> str:
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine or "unknown")


@dataclass
class AuditConfig:
    """Configuration for audit requests."""

    registry: str = DEFAULT_REGISTRY
    timeout: float = 30.0
    npm_version: str = "10.2.4"
    node_version: str = "v20.9.0"
    platform: str = field(default_factory=lambda: sys.platform)
    arch: str = field(default_factory=_node_arch)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.registry.startswith(("http://", "https://")):
            raise ValueError(f"Registry must be an http(s) URL: {self.registry}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive: {self.timeout}")
        self.registry = self.registry.rstrip("/")

    @property
    def audit_url(self) -> str:
        return f"{self.registry}{AUDIT_PATH}"

    @property
    def user_agent(self) -> str:
        return (
            f"npm/{self.npm_version} node/{self.node_version} "
            f"{self.platform} {self.arch} workspaces/false"
        )


class NpmAuditClient:
    """Async client posting audit trees to the npm audit endpoint.

    The request is made once; failures are not retried.
    """

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the audit client.

        Args:
            config: Audit configuration (defaults to the public npm registry)
            session: Optional aiohttp session; the client does not close it
        """
        self.config = config or AuditConfig()
        self.logger = get_logger("NpmAuditClient")
        self._session = session
        self._owns_session = session is None
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def __aenter__(self) -> "NpmAuditClient":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def build_payload(self, tree: AuditTree) -> Dict[str, Any]:
        """Build the request body for an audit tree.

        Args:
            tree: Audit tree built from the lockfile

        Returns:
            JSON-serialisable request body
        """
        payload = tree.to_dict()
        payload.update({
            "install": [],
            "remove": [],
            "metadata": {
                "node_version": self.config.node_version,
                "npm_version": self.config.npm_version,
                "platform": self.config.platform,
                "arch": self.config.arch,
            },
        })
        return payload

    def build_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "npm-command": "audit",
            "npm-version": self.config.npm_version,
            "user-agent": self.config.user_agent,
        }

    async def audit(self, tree: AuditTree) -> AuditReport:
        """Submit an audit tree and parse the report.

        Args:
            tree: Audit tree built from the lockfile

        Returns:
            Parsed audit report

        Raises:
            AuditEndpointUnavailableError: If the endpoint answers 404
            AuditRequestError: On any other failure
        """
        url = self.config.audit_url
        self.logger.debug(f"Posting audit tree with {len(tree.dependencies)} packages to {url}")

        session = self._get_session()
        try:
            async with session.post(
                url,
                json=self.build_payload(tree),
                headers=self.build_headers(),
            ) as response:
                if response.status == 404:
                    raise AuditEndpointUnavailableError(
                        f"The npm audit endpoint is not available at {url}"
                    )
                if response.status != 200:
                    error_text = await response.text()
                    raise AuditRequestError(
                        f"Audit request failed with status {response.status}: {error_text}",
                        status=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise AuditRequestError(f"Audit request failed: {e}") from e

        report = parse_audit_report(data)
        self.logger.debug(
            f"Audit returned {len(report.advisories)} advisories, "
            f"{report.vulnerabilities.total} vulnerabilities"
        )
        return report

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp ClientSession
        """
        if not self._session or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                connector=connector,
            )
            self._owns_session = True
        return self._session


async def run_audit(tree: AuditTree, config: Optional[AuditConfig] = None) -> AuditReport:
    """Audit a tree with a short-lived client."""
    async with NpmAuditClient(config) as client:
        return await client.audit(tree)
