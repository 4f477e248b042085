"""
Low-level operating system helpers for scratch directories: resolving the temp root,
creating uniquely named directories and switching the process working directory.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging
import os
import tempfile

from contextlib import contextmanager
from typing import Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .validators import validate_prefix

logger = logging.getLogger(__name__)


# Methods --------------------------------------------------------------------------------------------------------------

def temp_root() -> str:
    """Return the platform temporary-file root, honouring TMPDIR, TEMP and TMP."""
    return tempfile.gettempdir()


def make_temp_dir(prefix: str, dir: str | os.PathLike[str] | None = None) -> str:
    """
    Atomically create a uniquely named directory and return its absolute path.

    The candidate path is the join of the root directory and prefix; a random token
    is appended to it, so concurrent callers using the same prefix never receive
    the same directory. The directory is created with mode 0o700.

    Args:
        prefix: Leading part of the directory name. Must be a non-empty string.
        dir: Parent directory. If None, the platform temp root is used.

    Returns:
        str: Absolute path of the created directory.

    Raises:
        TypeError: If prefix is not a string.
        ValueError: If prefix is empty.
        FileNotFoundError: If the parent directory does not exist.
        PermissionError: If the parent directory is not writable.
        OSError: For other creation failures, e.g. no space left on device.

    Examples:
        >>> make_temp_dir("build-")
        '/tmp/build-k2x8d9qa'

        >>> make_temp_dir("job", dir="/var/tmp")
        '/var/tmp/jobz4m1c0te'
    """
    validate_prefix(prefix)
    root = temp_root() if dir is None else os.fspath(dir)
    candidate = os.path.join(root, prefix)

    # mkdtemp() treats a prefix with a directory part as relative to dir,
    # so split the candidate back into its parent and name
    parent, name = os.path.split(candidate)
    path = tempfile.mkdtemp(prefix=name, dir=parent)
    path = os.path.abspath(path)

    logger.debug("created temporary directory %s", path)
    return path


@contextmanager
def working_dir(
        path: str | os.PathLike[str], *,
        restore_to: str | os.PathLike[str] | None = None,
) -> Iterator[str]:
    """
    Context manager that makes path the process working directory.

    The working directory in effect on entry is recorded once and restored on every
    exit path, including when the body raised or changed directory by itself.

    The working directory is process-wide state: overlapping use from several threads
    or concurrently running coroutines races, and whichever block exits last decides
    the final working directory. This manager is not reentrant in that sense.

    Args:
        path: Directory to enter.
        restore_to: Directory to return to on exit. If None, the working directory
            in effect on entry is used. Callers that must capture the working directory
            earlier than entry pass it here.

    Yields:
        str: The directory that was entered, as passed in.
    """
    saved = os.getcwd() if restore_to is None else os.fspath(restore_to)
    target = os.fspath(path)
    os.chdir(target)
    logger.debug("entered working directory %s", target)
    try:
        yield target
    finally:
        os.chdir(saved)
        logger.debug("restored working directory %s", saved)
