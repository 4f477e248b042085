#
# Pytest Fixtures
#

# Standard library -----------------------------------------------------------------------------------------------------
import os
import pathlib
import tempfile

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def tmp_root(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """Point the platform temp root at an empty per-test directory."""
    root = tmp_path / "tmp_root"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def saved_cwd(monkeypatch: pytest.MonkeyPatch) -> str:
    """Record the working directory and restore it after the test whatever happens."""
    cwd = os.getcwd()
    monkeypatch.chdir(cwd)
    return cwd


@pytest.fixture
def populated_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create a directory with mixed contents (files and nested subdirectories)."""
    root = tmp_path / "root"
    root.mkdir()
    # Top-level files
    (root / "a.txt").write_text("A")
    (root / "b.log").write_text("B")
    # Nested directory with files
    sub = root / "sub"
    sub.mkdir()
    (sub / "c.dat").write_text("C")
    # Deeper nesting
    deep = sub / "deep"
    deep.mkdir()
    (deep / "e.txt").write_text("E")
    return root
