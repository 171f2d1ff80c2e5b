"""Tests for project root discovery."""

import json

import pytest

from bun_deps.utils.path_utils import (
    ProjectRootNotFoundError,
    find_root_dir,
    get_current_package_name,
    lockfile_path,
)


@pytest.fixture
def workspace_project(tmp_path):
    """Create a root project with bun.lock and one workspace package."""
    root = tmp_path / "project"
    ui = root / "packages" / "ui"
    ui.mkdir(parents=True)
    (root / "package.json").write_text(json.dumps({"name": "my-app", "workspaces": ["packages/*"]}))
    (root / "bun.lock").write_text('{"lockfileVersion": 1, "packages": {}}')
    (ui / "package.json").write_text(json.dumps({"name": "@my-app/ui"}))
    (ui / "src").mkdir()
    return root


class TestFindRootDir:
    """Test walking up to the project root."""

    def test_root_itself(self, workspace_project):
        assert find_root_dir(workspace_project) == workspace_project.resolve()

    def test_from_workspace_package(self, workspace_project):
        """Test that a workspace package resolves to the directory holding bun.lock."""
        ui = workspace_project / "packages" / "ui"
        assert find_root_dir(ui) == workspace_project.resolve()

    def test_from_nested_directory(self, workspace_project):
        src = workspace_project / "packages" / "ui" / "src"
        assert find_root_dir(src) == workspace_project.resolve()

    def test_nearest_manifest_without_lockfile(self, tmp_path):
        """Test the fallback to the nearest package.json when no bun.lock exists."""
        project = tmp_path / "standalone"
        nested = project / "lib"
        nested.mkdir(parents=True)
        (project / "package.json").write_text("{}")

        assert find_root_dir(nested) == project.resolve()

    def test_invalid_manifest_ignored(self, tmp_path):
        project = tmp_path / "project"
        broken = project / "broken"
        broken.mkdir(parents=True)
        (project / "package.json").write_text('{"name": "ok"}')
        (broken / "package.json").write_text("{ not json")

        assert find_root_dir(broken) == project.resolve()

    def test_not_found(self, tmp_path, monkeypatch):
        """Test that reaching the filesystem root raises."""
        monkeypatch.setattr(
            "bun_deps.utils.path_utils._read_manifest", lambda directory: None
        )
        with pytest.raises(ProjectRootNotFoundError):
            find_root_dir(tmp_path)


class TestGetCurrentPackageName:
    """Test current package detection."""

    def test_at_root(self, workspace_project):
        assert get_current_package_name(workspace_project) == ""

    def test_in_workspace(self, workspace_project):
        assert get_current_package_name(workspace_project / "packages" / "ui") == "@my-app/ui"

    def test_without_manifest(self, workspace_project):
        """Test that a directory without package.json has no package name."""
        assert get_current_package_name(workspace_project / "packages" / "ui" / "src") is None

    def test_manifest_without_name(self, workspace_project):
        tools = workspace_project / "tools"
        tools.mkdir()
        (tools / "package.json").write_text("{}")
        assert get_current_package_name(tools) is None


def test_lockfile_path(tmp_path):
    assert lockfile_path(tmp_path) == tmp_path / "bun.lock"
