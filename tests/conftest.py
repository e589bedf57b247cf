"""
Shared pytest fixtures for the reactcompile test suite.

Every test gets an isolated user config directory and a clean
REACTCOMPILE_* environment, so nothing on the developer's machine leaks
into a run.

Usage in tests:
    def test_something(project):
        project.add("/src/lib/x.ts", "export const x = 1;")
        backend = project.backend("bundle")

    def test_with_files(memory_provider):
        record = run(memory_provider.fetch("@/lib/utils"))
"""

import pytest

from reactcompile.config import ConfigManager
from tests.factories import ProjectFactory


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the user config at a temp dir and drop REACTCOMPILE_* variables."""
    user_dir = tmp_path / "home" / ".reactcompile"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for variable in list(ConfigManager.ENV_OVERRIDES) + ["REACTCOMPILE_PROJECT_PATH"]:
        monkeypatch.delenv(variable, raising=False)
    return user_dir


@pytest.fixture
def project():
    """The sample playground project (entry, button, utils)."""
    return ProjectFactory()


@pytest.fixture
def memory_provider(project):
    return project.provider()


@pytest.fixture
def project_dir(tmp_path, project):
    """The sample project written to disk."""
    return project.write_to(tmp_path / "project")
