#
# Tmpscope - OS Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import os
import stat
import sys
import tempfile
from pathlib import Path

# Third Party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from tmpscope.os import make_temp_dir, temp_root, working_dir
from tmpscope.validators import ERR_PREFIX_MUST_LENGTH, ERR_PREFIX_MUST_STRING


# Tests ----------------------------------------------------------------------------------------------------------------

class TestTempRoot:
    def test_follows_tempfile(self, tmp_root: Path):
        assert temp_root() == str(tmp_root)

    def test_matches_gettempdir(self):
        assert temp_root() == tempfile.gettempdir()


class TestMakeTempDir:
    def test_creates_prefixed_dir_in_root(self, tmp_root: Path):
        """Create an absolute, prefixed directory directly under the temp root."""
        path = make_temp_dir("test")

        assert os.path.isabs(path)
        assert os.path.isdir(path)
        assert Path(path).parent == tmp_root
        assert Path(path).name.startswith("test")
        assert Path(path).name != "test"

    def test_explicit_parent_dir(self, tmp_path: Path):
        parent = tmp_path / "parent"
        parent.mkdir()

        path = make_temp_dir("job-", dir=parent)

        assert Path(path).parent == parent
        assert Path(path).name.startswith("job-")

    def test_same_prefix_unique(self, tmp_root: Path):
        paths = {make_temp_dir("same") for _ in range(20)}
        assert len(paths) == 20
        assert all(os.path.isdir(p) for p in paths)

    def test_prefix_with_directory_part(self, tmp_root: Path):
        """A prefix containing a separator is joined under the root like any path."""
        (tmp_root / "sub").mkdir()

        path = make_temp_dir(os.path.join("sub", "x-"))

        assert Path(path).parent == tmp_root / "sub"
        assert Path(path).name.startswith("x-")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_private_mode(self, tmp_root: Path):
        path = make_temp_dir("test")
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o700

    def test_missing_parent_raises(self, tmp_path: Path):
        """Creation errors propagate unchanged."""
        missing = tmp_path / "missing"
        with pytest.raises(FileNotFoundError):
            make_temp_dir("test", dir=missing)
        assert not missing.exists()

    def test_invalid_prefix(self, tmp_root: Path):
        with pytest.raises(TypeError, match=ERR_PREFIX_MUST_STRING):
            make_temp_dir(None)  # type: ignore[arg-type]
        with pytest.raises(ValueError, match=ERR_PREFIX_MUST_LENGTH):
            make_temp_dir("")
        assert list(tmp_root.iterdir()) == []


class TestWorkingDir:
    def test_enter_and_restore(self, tmp_path: Path, saved_cwd: str):
        with working_dir(tmp_path) as entered:
            assert entered == str(tmp_path)
            assert os.path.samefile(os.getcwd(), tmp_path)
        assert os.getcwd() == saved_cwd

    def test_restore_on_error(self, tmp_path: Path, saved_cwd: str):
        with pytest.raises(RuntimeError, match="boom"):
            with working_dir(tmp_path):
                raise RuntimeError("boom")
        assert os.getcwd() == saved_cwd

    def test_restore_after_body_changes_dir(self, tmp_path: Path, saved_cwd: str):
        """Restore the recorded directory even if the body moved elsewhere."""
        other = tmp_path / "other"
        other.mkdir()
        with working_dir(tmp_path):
            os.chdir(other)
        assert os.getcwd() == saved_cwd

    def test_restore_to(self, tmp_path: Path, saved_cwd: str):
        target = tmp_path / "target"
        back = tmp_path / "back"
        target.mkdir()
        back.mkdir()

        with working_dir(target, restore_to=back):
            assert os.path.samefile(os.getcwd(), target)
        assert os.path.samefile(os.getcwd(), back)

    def test_missing_dir_leaves_cwd(self, tmp_path: Path, saved_cwd: str):
        with pytest.raises(FileNotFoundError):
            with working_dir(tmp_path / "missing"):
                pass
        assert os.getcwd() == saved_cwd
