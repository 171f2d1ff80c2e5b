"""Parser for Bun's text lockfile (bun.lock)."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import json5

from .lockfile import (
    ROOT_WORKSPACE,
    Lockfile,
    PackageMetadata,
    PackageRecord,
    Workspace,
)
from ..utils.logging import get_logger
from ..utils.path_utils import LOCKFILE_NAME

logger = get_logger("BunLockfileParser")


class MalformedLockfileError(ValueError):
    """Raised when lockfile text cannot be turned into a Lockfile."""


class BunLockfileParser:
    """Parser for bun.lock files.

    bun.lock is JSON with trailing commas allowed. It is read with a
    JSON5 parser, which accepts the trailing commas without touching the
    contents of string values.
    """

    def __init__(self) -> None:
        """Initialize the bun.lock parser."""
        self.ecosystem = "nodejs"
        self.parser_type = "bun"
        self.supported_extensions = [".lock"]

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file.

        Args:
            file_path: Path to the file

        Returns:
            True if file is a bun.lock file
        """
        return file_path.name == LOCKFILE_NAME

    def parse(self, file_path: Path) -> Lockfile:
        """Parse a bun.lock file.

        Args:
            file_path: Path to the bun.lock file

        Returns:
            Parsed lockfile model

        Raises:
            FileNotFoundError: If the file doesn't exist
            MalformedLockfileError: If the content is not a valid lockfile
        """
        self.validate_file(file_path)

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except UnicodeDecodeError as e:
            raise MalformedLockfileError(f"Lockfile is not valid UTF-8: {e}") from e

        return self.parse_text(content)

    def parse_text(self, content: str) -> Lockfile:
        """Parse lockfile text into a Lockfile.

        Args:
            content: Raw bun.lock content

        Returns:
            Parsed lockfile model

        Raises:
            MalformedLockfileError: If the content is not well-formed or has
                no ``packages`` table
        """
        try:
            data = json5.loads(content)
        except ValueError as e:
            raise MalformedLockfileError(f"Lockfile is not well-formed: {e}") from e

        if not isinstance(data, dict):
            raise MalformedLockfileError("Lockfile must contain a JSON object")

        if "packages" not in data:
            raise MalformedLockfileError("Lockfile has no 'packages' field")

        raw_packages = data["packages"]
        if not isinstance(raw_packages, dict):
            raise MalformedLockfileError("Lockfile 'packages' field must be an object")

        raw_workspaces = data.get("workspaces")
        if raw_workspaces is not None and not isinstance(raw_workspaces, dict):
            raise MalformedLockfileError("Lockfile 'workspaces' field must be an object")

        workspaces, skipped_workspaces = self._build_workspaces(raw_workspaces or {})
        packages, skipped_packages = self._build_packages(raw_packages)

        if skipped_packages:
            logger.debug(f"Skipped {len(skipped_packages)} malformed package entries")

        version = data.get("lockfileVersion")
        if isinstance(version, bool) or not isinstance(version, int):
            version = None

        return Lockfile(
            lockfile_version=version,
            workspaces=workspaces,
            packages=packages,
            skipped_packages=skipped_packages,
            skipped_workspaces=skipped_workspaces,
        )

    def validate_file(self, file_path: Path) -> None:
        """Validate that the file exists and is readable.

        Args:
            file_path: Path to validate

        Raises:
            FileNotFoundError: If file doesn't exist
            PermissionError: If file is not readable
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        if not os.access(file_path, os.R_OK):
            raise PermissionError(f"File is not readable: {file_path}")

    def _build_workspaces(
        self, raw_workspaces: Dict[str, Any]
    ) -> Tuple[Dict[str, Workspace], Tuple[str, ...]]:
        """Build the workspace table, synthesizing the root if none is declared."""
        workspaces: Dict[str, Workspace] = {}
        skipped: List[str] = []

        for path, entry in raw_workspaces.items():
            if not isinstance(entry, dict):
                skipped.append(path)
                continue

            name = entry.get("name")
            workspaces[path] = Workspace(
                path=path,
                name=name if isinstance(name, str) else "",
                dependencies=self._string_map(entry.get("dependencies")),
                dev_dependencies=self._string_map(entry.get("devDependencies")),
            )

        if not workspaces:
            workspaces[ROOT_WORKSPACE] = Workspace(path=ROOT_WORKSPACE)

        return workspaces, tuple(skipped)

    def _build_packages(
        self, raw_packages: Dict[str, Any]
    ) -> Tuple[Tuple[Tuple[str, PackageRecord], ...], Tuple[str, ...]]:
        """Classify package entries as well-formed records or skipped keys."""
        records: List[Tuple[str, PackageRecord]] = []
        skipped: List[str] = []

        for key, entry in raw_packages.items():
            record = self._create_record(key, entry)
            if record is None:
                skipped.append(key)
                continue
            records.append((key, record))

        return tuple(records), tuple(skipped)

    def _create_record(self, key: str, entry: Any) -> Optional[PackageRecord]:
        """Create a PackageRecord from a ``[resolved, source, metadata, integrity?]`` tuple.

        Git and tarball entries put other values in the third slot; they
        keep their record with empty metadata.

        Args:
            key: Package table key
            entry: Raw package table value

        Returns:
            PackageRecord or None if the entry is malformed
        """
        if not isinstance(entry, list) or len(entry) < 3:
            return None

        resolved_key, source_id, meta = entry[0], entry[1], entry[2]
        if not isinstance(resolved_key, str):
            return None

        integrity = entry[3] if len(entry) > 3 and isinstance(entry[3], str) else None

        return PackageRecord(
            key=key,
            resolved_key=resolved_key,
            source_id=source_id if isinstance(source_id, str) else "",
            metadata=self._create_metadata(meta) if isinstance(meta, dict) else PackageMetadata(),
            integrity=integrity,
        )

    def _create_metadata(self, meta: Dict[str, Any]) -> PackageMetadata:
        return PackageMetadata(
            dependencies=self._raw_map(meta.get("dependencies")),
            declares_dependencies=isinstance(meta.get("dependencies"), dict),
            dev_dependencies=self._raw_map(meta.get("devDependencies")),
            peer_dependencies=self._raw_map(meta.get("peerDependencies")),
            optional_dependencies=self._raw_map(meta.get("optionalDependencies")),
            bin=meta.get("bin"),
            os=meta.get("os"),
            cpu=meta.get("cpu"),
        )

    @staticmethod
    def _raw_map(value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        return dict(value)

    @staticmethod
    def _string_map(value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(name): str(spec) for name, spec in value.items()}


def parse_lockfile(content: str) -> Lockfile:
    """Parse bun.lock text with the default parser."""
    return BunLockfileParser().parse_text(content)
