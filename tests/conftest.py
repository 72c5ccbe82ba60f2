"""Root test configuration: shared fixtures and session-level cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import pytest

from sitepub.core.models import Site
from sitepub.core.workspace import Workspace
from sitepub.crud.memory_repo import MemoryProfileService, MemoryService


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["sitepub.db", "test.db"]
_CLEANUP_DIRS = ["_workspace"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files and workspace directories created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


@pytest.fixture(name="service")
def service_fixture():
    return MemoryService()


@pytest.fixture(name="profile_service")
def profile_service_fixture():
    return MemoryProfileService()


@pytest.fixture(name="workspace")
def workspace_fixture(tmp_path):
    return Workspace(tmp_path / "sites")


@pytest.fixture(name="site")
def site_fixture(service, workspace):
    """A blog site stored in the memory service, with its directories created."""
    site = service.create_site(Site(name="My Blog", slug="my-blog"))
    workspace.create_site_directories(site.slug)
    return site
