"""Layer-boundary decorators.

`safe` turns technical exceptions into AppErrors and records which function
failed. `safe_with_fallback` degrades to a fallback value instead, logging the
mapped error through ErrorLogger so the severity policy applies.
"""

from collections.abc import Callable
from functools import wraps
from inspect import iscoroutinefunction
from typing import Never, ParamSpec, TypeVar

from portal.shared.logging import Logger, LoguruLogger

from .base import AppError, ErrorList
from .logging import ErrorLogger
from .mapping import ExceptionMapper
from .schemas import ErrorContext

P = ParamSpec("P")
T = TypeVar("T")


def _origin(func: Callable[..., object]) -> ErrorContext:
    return ErrorContext(operation=func.__qualname__, component=func.__module__)


def _to_app_error(exc: Exception, func: Callable[..., object]) -> AppError:
    """Map `exc` and stamp the failing function (an inner stamp wins)."""
    return ExceptionMapper.map(exc, func.__name__).merge_context(_origin(func))


def safe(func: Callable[P, T]) -> Callable[P, T]:
    """Keep technical exceptions from leaking out of a service function.

    Usage:
        @safe
        async def load_profile(user_id: str) -> Profile:
            ...

    AppErrors (and the items of an ErrorList) pass through with the function
    filled in as `operation`/`component` when nothing deeper set them. Any
    other exception is mapped via ExceptionMapper and chained.
    """

    def _handle_exception(e: Exception) -> Never:
        if isinstance(e, AppError):
            raise e.merge_context(_origin(func))
        if isinstance(e, ErrorList):
            for item in e:
                item.merge_context(_origin(func))
            raise e
        raise _to_app_error(e, func) from e

    if iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _handle_exception(e)

        return async_wrapper  # type: ignore[return-value]

    @wraps(func)
    def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            _handle_exception(e)

    return sync_wrapper  # type: ignore[return-value]


def safe_with_fallback(
    fallback: T,
    logger: Logger | None = None,
    log_all_errors: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Return `fallback` instead of raising.

    Usage:
        @safe_with_fallback(fallback=None)
        async def render_error(self, request, err) -> Response | None:
            ...

    Args:
        fallback: Value to return when an exception occurs
        logger: Where the mapped error is logged; loguru by default
        log_all_errors: Log low-severity failures too
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        def _recover(e: Exception) -> T:
            err = e if isinstance(e, AppError) else _to_app_error(e, func)
            error_logger = ErrorLogger(logger or LoguruLogger(), log_all_errors)
            error_logger.log_error(err.merge_context(_origin(func)), {"fallback": repr(fallback)})
            return fallback

        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    return _recover(e)

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _recover(e)

        return sync_wrapper  # type: ignore[return-value]

    return decorator
