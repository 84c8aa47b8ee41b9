"""Guards against the test suite writing into the repository.

Preferences, energy, tasks and sessions are persisted under ./data/state
and ./db. Tests must create those under tmp_path (see the `workspace`
fixture), never in the checkout.
"""

import hashlib
import os
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent.parent


def _fingerprint(path: Path) -> str | None:
    """Hash of relative paths, sizes and mtimes under path (None if absent)."""
    if not path.exists():
        return None

    hasher = hashlib.sha256()
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for filename in sorted(files):
            filepath = Path(root) / filename
            stat = filepath.stat()
            hasher.update(str(filepath.relative_to(path)).encode())
            hasher.update(str(stat.st_size).encode())
            hasher.update(str(int(stat.st_mtime)).encode())
    return hasher.hexdigest()


class TestStateDirectorySafety:
    """./data/state holds the local preference store."""

    @pytest.fixture(scope="class")
    def before(self):
        return _fingerprint(REPO_ROOT / "data" / "state")

    def test_state_directory_untouched(self, before):
        if _fingerprint(REPO_ROOT / "data" / "state") != before:
            pytest.fail(
                "./data/state was created or modified during the test run. "
                "Use the workspace fixture for anything that saves preferences."
            )

    def test_shipped_data_untouched(self):
        """Config and curriculum files are read, never rewritten."""
        for name in ("config", "curriculum"):
            path = REPO_ROOT / "data" / name
            assert path.exists()
            for file in path.iterdir():
                assert file.suffix == ".yaml", f"unexpected file {file}"


class TestDatabaseDirectorySafety:
    """./db holds the SQLite database."""

    @pytest.fixture(scope="class")
    def before(self):
        return _fingerprint(REPO_ROOT / "db")

    def test_db_directory_untouched(self, before):
        if _fingerprint(REPO_ROOT / "db") != before:
            pytest.fail(
                "./db was created or modified during the test run. "
                "Databases in tests must live under tmp_path."
            )


class TestTestIsolation:
    """Static checks over the test modules."""

    def test_no_default_database_path(self):
        """init_db() without a path would open ./db/neurostudy.db."""
        violations = [
            test_file.name
            for test_file in sorted((REPO_ROOT / "tests").glob("test_*.py"))
            if test_file.name != "test_safety.py" and "init_db()" in test_file.read_text()
        ]
        if violations:
            pytest.fail("Tests call init_db() without a temp path: " + ", ".join(violations))
