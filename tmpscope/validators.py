"""
Tmpscope Argument Validators

Validation of the arguments accepted by the scratch-directory runners. Validators
return the value unchanged when it is acceptable and raise builtin exceptions with
the exported message constants otherwise.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any, Callable, TypeVar

# Constants ------------------------------------------------------------------------------------------------------------

ERR_PREFIX_MUST_STRING = "prefix must be of type string"
ERR_PREFIX_MUST_LENGTH = "prefix must not be an empty string"
ERR_TASK_MUST_FUNC = "task must be of type function"

F = TypeVar("F", bound=Callable[..., Any])


# Methods --------------------------------------------------------------------------------------------------------------

def validate_prefix(prefix: Any) -> str:
    """
    Validate a temporary directory name prefix.

    The prefix is only a human-readable label for the generated directory name. It is not
    checked for path separators or characters the file system treats specially; callers
    are responsible for passing a sensible name segment.

    Args:
        prefix: Value to validate. Subclasses of str are accepted.

    Returns:
        str: The original prefix if valid.

    Raises:
        TypeError: If prefix is not a string.
        ValueError: If prefix is the empty string.

    Examples:
        >>> validate_prefix("build-")
        'build-'

        >>> validate_prefix("")
        Traceback (most recent call last):
            ...
        ValueError: prefix must not be an empty string
    """
    if not isinstance(prefix, str):
        raise TypeError(ERR_PREFIX_MUST_STRING)
    if not prefix:
        raise ValueError(ERR_PREFIX_MUST_LENGTH)
    return prefix


def validate_task(task: F) -> F:
    """
    Validate that task is callable.

    Any callable qualifies: plain and async functions, lambdas, bound methods,
    functools.partial objects and instances defining __call__.

    Raises:
        TypeError: If task is not callable.
    """
    if not callable(task):
        raise TypeError(ERR_TASK_MUST_FUNC)
    return task


def validate_args(prefix: Any, task: Any) -> None:
    """Validate prefix, then task. The first failing check wins."""
    validate_prefix(prefix)
    validate_task(task)
