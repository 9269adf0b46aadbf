from collections.abc import Callable
import functools
import logging
from typing import ParamSpec, TypeVar


logger = logging.getLogger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def traced(name: str, fn: Callable[P, T]) -> Callable[P, T]:
    """Wrap a component operation with debug logs for entry, return and failure."""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        if not logger.isEnabledFor(logging.DEBUG):
            return fn(*args, **kwargs)

        logger.debug("entering %s", name, extra={"operation": name, "call_args": repr(args)})
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            logger.debug("%s raised %s", name, type(exc).__name__, extra={"operation": name})
            raise
        logger.debug("%s returned", name, extra={"operation": name, "result": repr(result)})
        return result

    return wrapper
