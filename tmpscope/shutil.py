"""
Recursive removal of scratch directories.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging
import os
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


# Methods --------------------------------------------------------------------------------------------------------------

def rm_tree(path: str | os.PathLike[str], *, missing_ok: bool = False) -> None:
    """
    Removes a directory together with all of its contents.

    Content left behind by a task may be read-only: entries that cannot be removed
    because of missing permissions are made accessible (the entry and its parent
    directory) and removal is retried once per entry. Symlinks inside the tree are
    unlinked, never followed.

    Args:
        path: Directory to remove.
        missing_ok: If False, raises FileNotFoundError if directory doesn't exist.
            If True, silently succeeds if directory is missing.

    Raises:
        FileNotFoundError: If path doesn't exist (when missing_ok=False).
        NotADirectoryError: If path is a symlink or exists but is not a directory.
        PermissionError: If an entry is still not removable after the retry.
        OSError: If removal fails for other reasons.

    Examples:
        >>> rm_tree("/tmp/build-k2x8d9qa")
        >>> rm_tree("/tmp/build-k2x8d9qa", missing_ok=True)  # Safe if already gone
    """
    dir_path = Path(path)

    # Handle missing directory
    if not dir_path.exists() and not dir_path.is_symlink():
        if missing_ok:
            return
        raise FileNotFoundError(f"Directory not found: {dir_path}")

    # A symlink to a directory is not a tree we own
    if dir_path.is_symlink() or not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")

    root = os.fspath(dir_path)
    shutil.rmtree(root, onexc=_writable_retry_handler(root))
    logger.debug("removed directory tree %s", dir_path)


# Private methods ------------------------------------------------------------------------------------------------------

def _writable_retry_handler(root: str):
    """
    Build an onexc handler for shutil.rmtree() that grants owner permissions and retries.

    Each path is retried at most once; a second failure on the same path propagates.
    Permissions are never changed above root, whose parent is usually a shared
    directory such as the system temp root.
    """
    retried: set[str] = set()

    def onexc(func, path, exc: BaseException) -> None:
        path = os.fspath(path)
        if not isinstance(exc, PermissionError) or path in retried:
            raise exc
        retried.add(path)

        targets = [path] if path == root else [os.path.dirname(path), path]
        for p in targets:
            try:
                mode = os.lstat(p).st_mode
            except FileNotFoundError:
                continue
            if not stat.S_ISLNK(mode):
                os.chmod(p, stat.S_IMODE(mode) | stat.S_IRWXU)

        if func in (os.open, os.scandir):
            # Listing the directory failed, so rmtree() skipped its whole subtree
            shutil.rmtree(path, onexc=onexc)
        else:
            func(path)

    return onexc
