"""Error handling helpers shared by the viewer.

Three ways a failure is reported, each ending in the log:

- ``safe_operation``: wraps a block. Host-side steps that may fail without
  breaking the viewer (saving geometry, disconnecting a source that may
  already be gone) pass ``silent=True``; the rest re-raise after logging.
- ``safe_call``: calls one function and returns a fallback on failure. Used
  to run observer callbacks so one broken observer cannot stop the others
  from seeing new peaks or positions.
- ``log_exception``: for code that handles the exception itself, such as
  the decoder turning a soundfile error into an ``error`` signal.

Usage:
    with safe_operation("Disconnecting level source", silent=True, log_level="debug"):
        source.level.disconnect(handler)

    safe_call(callback, peaks, operation_name="Notifying peaks observer")
"""

from contextlib import contextmanager
from typing import Optional, Callable, Any

from utils.logger import get_logger

logger = get_logger(__name__)


def _log_method(level: str, fallback):
    return getattr(logger, level, fallback)


@contextmanager
def safe_operation(
    operation_name: str,
    silent: bool = False,
    log_level: str = "warning",
):
    """Log any exception raised inside the block, with its traceback.

    Args:
        operation_name: what the block does, as it should read in the log
        silent: swallow the exception after logging instead of re-raising
        log_level: logger method name used for the record ("debug" for
            failures that are expected during teardown)

    Example:
        >>> with safe_operation("Reading track duration"):
        ...     duration = duration_seconds(path)
    """
    try:
        yield
    except Exception as e:
        _log_method(log_level, logger.warning)(
            f"Error during {operation_name}: {type(e).__name__}: {e}",
            exc_info=True
        )
        if not silent:
            raise


def safe_call(
    func: Callable,
    *args,
    operation_name: Optional[str] = None,
    silent: bool = True,
    default_return: Any = None,
    **kwargs
) -> Any:
    """Return ``func(*args, **kwargs)``, or ``default_return`` if it raises.

    The failure is logged as a warning under ``operation_name`` (the
    function's name when omitted). With ``silent=False`` it is re-raised
    after logging.
    """
    op_name = operation_name or f"calling {getattr(func, '__name__', repr(func))}"

    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Error during {op_name}: {type(e).__name__}: {e}", exc_info=True)
        if not silent:
            raise
        return default_return


def log_exception(
    exception: Exception,
    context: str = "",
    level: str = "error",
    include_traceback: bool = True
):
    """Log an exception the caller has already caught.

    Example:
        >>> try:
        ...     info = sf.info(path)
        ... except sf.LibsndfileError as e:
        ...     log_exception(e, "Reading audio header", level="warning")
    """
    message = f"{type(exception).__name__}: {exception}"
    if context:
        message = f"{context}: {message}"

    exc_info = (type(exception), exception, exception.__traceback__) if include_traceback else None
    _log_method(level, logger.error)(message, exc_info=exc_info)
