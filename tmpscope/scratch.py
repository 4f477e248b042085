#
# Tmpscope Scratch Directories
#
# Run a unit of work inside a freshly created temporary directory that is removed
# afterwards on every exit path. The within_* variants also make that directory the
# process working directory for the duration of the work.
#
# The working directory is process-wide: overlapping within_* calls from concurrent
# coroutines or threads race with each other, and whichever finishes last decides the
# final working directory. The with_* variants never touch it and are safe to overlap.
#

# Standard library -----------------------------------------------------------------------------------------------------
import asyncio
import inspect
import logging
import os
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .os import make_temp_dir, working_dir
from .shutil import rm_tree
from .validators import (
    ERR_PREFIX_MUST_LENGTH,
    ERR_PREFIX_MUST_STRING,
    ERR_TASK_MUST_FUNC,
    validate_args,
    validate_prefix,
)

__all__ = [
    "ERR_PREFIX_MUST_LENGTH",
    "ERR_PREFIX_MUST_STRING",
    "ERR_TASK_MUST_FUNC",
    "ERR_TASK_AND_CLEANUP_FAILED",
    "TaskFn",
    "async_temp_dir",
    "temp_dir",
    "within_temp_dir",
    "with_tmpdir",
    "with_tmpdir_sync",
    "within_tmpdir",
    "within_tmpdir_sync",
]

logger = logging.getLogger(__name__)

# Constants ------------------------------------------------------------------------------------------------------------

ERR_TASK_AND_CLEANUP_FAILED = "task and temporary directory cleanup both failed"

TaskFn = Callable[[str], Awaitable[None] | None]


# Methods --------------------------------------------------------------------------------------------------------------

async def with_tmpdir(prefix: str, task: TaskFn) -> None:
    """
    Run task with the path of a new temporary directory, then remove the directory.

    The directory is created under the platform temp root with a name made of prefix
    and a random suffix. task is called once with its absolute path; if it returns an
    awaitable, that is awaited. The directory and everything in it is removed whether
    task returns, raises, or is cancelled.

    Args:
        prefix: Non-empty leading part of the directory name.
        task: Sync or async callable receiving the directory path.

    Raises:
        TypeError: If prefix is not a string or task is not callable.
        ValueError: If prefix is empty.
        OSError: If the directory cannot be created, or cannot be removed after task succeeded.
        ExceptionGroup: If task raised and removing the directory failed as well;
            holds the task's exception and the cleanup error, in that order.

    Any exception raised by task propagates unchanged once the directory is gone.

    Examples:
        >>> async def build(path: str) -> None:
        ...     Path(path, "out.txt").write_text("done")
        >>> asyncio.run(with_tmpdir("build-", build))
    """
    validate_args(prefix, task)
    async with async_temp_dir(prefix) as path:
        await _call_task(task, path)


async def within_tmpdir(prefix: str, task: TaskFn) -> None:
    """
    Like with_tmpdir(), but task runs with the temporary directory as working directory.

    The working directory is recorded when the call starts, before the directory is
    created, and restored on every exit path before the directory is removed. It is
    restored to that recorded value even if task changed directory itself.

    Not safe to overlap with other within_tmpdir() calls or other code changing the
    working directory while task is suspended.
    """
    validate_args(prefix, task)
    saved_cwd = os.getcwd()

    async def run_within(path: str) -> None:
        with working_dir(path, restore_to=saved_cwd):
            await _call_task(task, path)

    await with_tmpdir(prefix, run_within)


def with_tmpdir_sync(prefix: str, task: Callable[[str], None]) -> None:
    """Blocking counterpart of with_tmpdir() for synchronous tasks."""
    validate_args(prefix, task)
    with temp_dir(prefix) as path:
        _call_task_sync(task, path)


def within_tmpdir_sync(prefix: str, task: Callable[[str], None]) -> None:
    """Blocking counterpart of within_tmpdir() for synchronous tasks."""
    validate_args(prefix, task)
    with within_temp_dir(prefix) as path:
        _call_task_sync(task, path)


@contextmanager
def temp_dir(prefix: str) -> Iterator[str]:
    """
    Context manager that provides the path of a new temporary directory.
    The directory and its contents are removed upon exiting the 'with' block,
    with the same error policy as with_tmpdir().
    """
    validate_prefix(prefix)
    path = make_temp_dir(prefix)
    try:
        yield path
    except BaseException as exc:
        _cleanup(path, exc)
        raise
    _cleanup(path, None)


@contextmanager
def within_temp_dir(prefix: str) -> Iterator[str]:
    """
    Context manager form of within_tmpdir_sync(): a new temporary directory that is also
    the working directory inside the 'with' block.
    """
    validate_prefix(prefix)
    saved_cwd = os.getcwd()
    with temp_dir(prefix) as path:
        with working_dir(path, restore_to=saved_cwd):
            yield path


@asynccontextmanager
async def async_temp_dir(prefix: str) -> AsyncIterator[str]:
    """
    Async context manager that provides the path of a new temporary directory.

    Creation and removal run in worker threads. Removal always finishes before the block
    is left, even if the surrounding task is cancelled while waiting for it. When the
    block itself is left through cancellation or another non-Exception BaseException,
    removal runs inline.
    """
    validate_prefix(prefix)
    path = await _create_dir(prefix)
    try:
        yield path
    except Exception as exc:
        await _remove_dir(path, exc)
        raise
    except BaseException as exc:
        _cleanup(path, exc)
        raise
    await _remove_dir(path, None)


# Private methods ------------------------------------------------------------------------------------------------------

async def _call_task(task: TaskFn, path: str) -> None:
    logger.debug("running %r in %s", task, path)
    result = task(path)
    if inspect.isawaitable(result):
        await result


def _call_task_sync(task: Callable[[str], None], path: str) -> None:
    logger.debug("running %r in %s", task, path)
    result = task(path)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError("task returned an awaitable, use with_tmpdir() or within_tmpdir() for async tasks")


async def _create_dir(prefix: str) -> str:
    """Create the directory in a worker thread without leaking it if we are cancelled meanwhile."""
    creating = asyncio.ensure_future(asyncio.to_thread(make_temp_dir, prefix))
    try:
        return await asyncio.shield(creating)
    except asyncio.CancelledError:
        creating.add_done_callback(_remove_orphan)
        raise


async def _remove_dir(path: str, exc: BaseException | None) -> None:
    """Run _cleanup() in a worker thread and wait for it to finish even if we are cancelled meanwhile."""
    removing = asyncio.ensure_future(asyncio.to_thread(_cleanup, path, exc))
    try:
        await asyncio.shield(removing)
    except asyncio.CancelledError:
        while not removing.done():
            try:
                await asyncio.wait([removing])
            except asyncio.CancelledError:
                continue
        if not removing.cancelled():
            # Cancellation wins; _cleanup() already logged a removal failure
            removing.exception()
        raise


def _remove_orphan(creating: asyncio.Future) -> None:
    if creating.cancelled() or creating.exception() is not None:
        return
    rm_tree(creating.result(), missing_ok=True)


def _cleanup(path: str, exc: BaseException | None) -> None:
    """
    Remove path after the block it was created for has finished.

    exc is the exception the block raised, or None. A removal failure after a
    successful block propagates as is. After a failed block both errors are raised
    together in an ExceptionGroup; a BaseException that is not an Exception cannot go
    into one, so then the removal error propagates with exc as its context.
    """
    try:
        # The task may have removed the directory itself
        rm_tree(path, missing_ok=True)
    except OSError as cleanup_exc:
        logger.warning("failed to remove temporary directory %s: %s", path, cleanup_exc)
        if isinstance(exc, Exception):
            raise ExceptionGroup(ERR_TASK_AND_CLEANUP_FAILED, [exc, cleanup_exc]) from None
        if exc is not None and cleanup_exc.__context__ is None:
            cleanup_exc.__context__ = exc
        raise
