"""Shared fixtures.

Tests that touch persisted state run inside a temporary working directory:
config files are then absent, so built-in defaults apply and the state
directory and database are created under tmp_path.
"""

from pathlib import Path

import pytest

from neurostudy.config.app_config import clear_config_cache
from neurostudy.config.support_modes import clear_support_modes_cache
from neurostudy.core.curriculum import load_curriculum_file
from neurostudy.core.study_service import get_study_service, reset_study_service
from neurostudy.db.curriculum_repository import seed_curriculum
from neurostudy.prompts.registry import clear_cache as clear_prompt_cache

REPO_ROOT = Path(__file__).resolve().parent.parent
DEMO_CURRICULUM = REPO_ROOT / "data" / "curriculum" / "demo_curriculum_v1.yaml"


@pytest.fixture(autouse=True)
def _reset_globals():
    """Module-level caches and the global service never leak between tests."""
    clear_config_cache()
    clear_support_modes_cache()
    clear_prompt_cache()
    reset_study_service()
    yield
    clear_config_cache()
    clear_support_modes_cache()
    reset_study_service()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def demo_chapters():
    return load_curriculum_file(DEMO_CURRICULUM)


@pytest.fixture
def service(workspace):
    """Study service backed by a fresh database and state dir."""
    return get_study_service()


@pytest.fixture
def seeded_service(service, demo_chapters):
    """Study service with the demo curriculum loaded."""
    seed_curriculum(demo_chapters)
    return service
