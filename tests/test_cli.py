"""Tests for the bun-deps command line interface."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from bun_deps.audit.client import AuditEndpointUnavailableError
from bun_deps.audit.report import parse_audit_report
from bun_deps.cli.main import app


BUN_LOCK = '''{
  "lockfileVersion": 1,
  "workspaces": {
    "": {
      "name": "my-app",
      "dependencies": {
        "react": "^18.2.0",
      },
      "devDependencies": {
        "typescript": "^5.3.0",
      },
    },
    "packages/ui": {
      "name": "@my-app/ui",
      "dependencies": {
        "clsx": "^2.0.0",
      },
    },
  },
  "packages": {
    "clsx": ["clsx@2.1.0", "", {}, "sha512-clsx"],
    "js-tokens": ["js-tokens@4.0.0", "", {}, "sha512-jt"],
    "loose-envify": ["loose-envify@1.4.0", "", { "dependencies": { "js-tokens": "^4.0.0" } }, "sha512-le"],
    "react": ["react@18.2.0", "", { "dependencies": { "loose-envify": "^1.1.0" } }, "sha512-react"],
    "typescript": ["typescript@5.3.3", "", {}, "sha512-ts"],
  },
}
'''


runner = CliRunner()


@pytest.fixture
def project(tmp_path):
    """Create a Bun monorepo on disk."""
    root = tmp_path / "project"
    ui = root / "packages" / "ui"
    ui.mkdir(parents=True)
    (root / "package.json").write_text(json.dumps({"name": "my-app"}))
    (root / "bun.lock").write_text(BUN_LOCK)
    (ui / "package.json").write_text(json.dumps({"name": "@my-app/ui"}))
    return root


class TestListCommand:
    """Test the list command."""

    def test_list_root(self, project):
        result = runner.invoke(app, ["list", "--cwd", str(project)])

        assert result.exit_code == 0
        assert "Production Dependencies" in result.stdout
        assert "react@^18.2.0" in result.stdout
        assert "typescript@^5.3.0" in result.stdout
        assert "clsx" not in result.stdout

    def test_list_workspace(self, project):
        """Test that running inside a workspace lists only that workspace."""
        result = runner.invoke(app, ["list", "--cwd", str(project / "packages" / "ui")])

        assert result.exit_code == 0
        assert "clsx@^2.0.0" in result.stdout
        assert "react" not in result.stdout

    def test_list_recursive(self, project):
        result = runner.invoke(app, ["list", "-r", "--cwd", str(project / "packages" / "ui")])

        assert result.exit_code == 0
        assert "my-app" in result.stdout
        assert "@my-app/ui" in result.stdout
        assert "react@^18.2.0" in result.stdout
        assert "clsx@^2.0.0" in result.stdout

    def test_list_json(self, project):
        result = runner.invoke(app, ["list", "-r", "--json", "--cwd", str(project)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [ws["path"] for ws in data["workspaces"]] == ["", "packages/ui"]
        assert data["workspaces"][0]["devDependencies"] == {"typescript": "^5.3.0"}


class TestWhyCommand:
    """Test the why command."""

    def test_transitive(self, project):
        """Test that the chain of intermediate packages is shown."""
        result = runner.invoke(app, ["why", "js-tokens", "--cwd", str(project)])

        assert result.exit_code == 0
        assert 'Package "js-tokens" is required by' in result.stdout
        assert "Transitive Dependencies" in result.stdout
        assert "loose-envify@1.4.0" in result.stdout
        assert "react@18.2.0 (via loose-envify)" in result.stdout
        assert "Direct Dependencies" not in result.stdout

    def test_direct(self, project):
        result = runner.invoke(app, ["why", "typescript", "--cwd", str(project)])

        assert result.exit_code == 0
        assert "my-app (development)" in result.stdout

    def test_not_found(self, project):
        """Test that an unknown package is reported without failing."""
        result = runner.invoke(app, ["why", "left-pad", "--cwd", str(project)])

        assert result.exit_code == 0
        assert 'Package "left-pad" not found in any workspace' in result.stdout

    def test_json(self, project):
        result = runner.invoke(app, ["why", "loose-envify", "--json", "--cwd", str(project)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["found"] is True
        assert data["direct"] == []
        assert data["transitive"] == [{"name": "react", "version": "18.2.0", "through": []}]

    def test_missing_argument(self, project):
        result = runner.invoke(app, ["why", "--cwd", str(project)])
        assert result.exit_code != 0

    def test_malformed_lockfile(self, project):
        """Test that a malformed lockfile aborts the command."""
        (project / "bun.lock").write_text('{"lockfileVersion": 1}')

        result = runner.invoke(app, ["why", "react", "--cwd", str(project)])

        assert result.exit_code == 1

    def test_lockfile_is_directory(self, project):
        """Test that an unreadable lockfile path exits cleanly."""
        (project / "bun.lock").unlink()
        (project / "bun.lock").mkdir()

        result = runner.invoke(app, ["why", "react", "--cwd", str(project)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error reading bun.lock" in result.stdout

    def test_invalid_utf8_lockfile(self, project):
        (project / "bun.lock").write_bytes(b'{"packages": {"a\xff": ["a@1.0.0", "", {}]}}')

        result = runner.invoke(app, ["why", "a", "--cwd", str(project)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_missing_lockfile(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")

        result = runner.invoke(app, ["why", "react", "--cwd", str(tmp_path)])

        assert result.exit_code == 1


class TestAuditCommand:
    """Test the audit command."""

    def test_clean(self, project):
        report = parse_audit_report({"advisories": {}, "metadata": {"vulnerabilities": {}}})

        with patch("bun_deps.cli.main.run_audit", new=AsyncMock(return_value=report)) as run_audit:
            result = runner.invoke(app, ["audit", "--cwd", str(project)])

        assert result.exit_code == 0
        assert "No known vulnerabilities found" in result.stdout
        tree, config = run_audit.call_args[0]
        assert tree.requires == {"react": "^18.2.0", "typescript": "^5.3.0"}
        assert tree.dependencies["react"].version == "18.2.0"
        assert config.audit_url == "https://registry.npmjs.org/-/npm/v1/security/audits"

    def test_vulnerabilities(self, project):
        report = parse_audit_report({
            "advisories": {
                "1": {
                    "id": 1,
                    "title": "Bad thing",
                    "module_name": "loose-envify",
                    "severity": "high",
                    "url": "https://example.com/1",
                    "vulnerable_versions": "<2.0.0",
                    "patched_versions": ">=2.0.0",
                },
            },
            "metadata": {"vulnerabilities": {"high": 1}},
        })

        with patch("bun_deps.cli.main.run_audit", new=AsyncMock(return_value=report)):
            result = runner.invoke(app, ["audit", "--cwd", str(project)])

        assert result.exit_code == 0
        assert "Found 1 vulnerabilities" in result.stdout
        assert "High: 1" in result.stdout
        assert "loose-envify" in result.stdout

    def test_json_output_file(self, project, tmp_path):
        report = parse_audit_report({"metadata": {"vulnerabilities": {"low": 2}}})
        output = tmp_path / "audit.json"

        with patch("bun_deps.cli.main.run_audit", new=AsyncMock(return_value=report)):
            result = runner.invoke(app, ["audit", "--cwd", str(project), "-o", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["total"] == 2
        assert data["vulnerabilities"]["low"] == 2

    def test_registry_from_environment(self, project):
        report = parse_audit_report({})

        with patch("bun_deps.cli.main.run_audit", new=AsyncMock(return_value=report)) as run_audit:
            result = runner.invoke(
                app,
                ["audit", "--cwd", str(project)],
                env={"BUN_DEPS_REGISTRY": "https://npm.example.com"},
            )

        assert result.exit_code == 0
        _, config = run_audit.call_args[0]
        assert config.registry == "https://npm.example.com"

    def test_invalid_registry(self, project):
        result = runner.invoke(app, ["audit", "--registry", "nope", "--cwd", str(project)])
        assert result.exit_code == 1

    def test_endpoint_unavailable(self, project):
        """Test that a missing audit endpoint aborts the command."""
        failing = AsyncMock(side_effect=AuditEndpointUnavailableError("404"))

        with patch("bun_deps.cli.main.run_audit", new=failing):
            result = runner.invoke(app, ["audit", "--cwd", str(project)])

        assert result.exit_code == 1
        assert "The npm audit endpoint is not available" in result.stdout
