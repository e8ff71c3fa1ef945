"""
Exception logging helpers for failures that reach the route boundary.

Streamed responses run inside anyio task groups, so failures can arrive
wrapped in exception groups; those are unpacked and logged one by one.
"""

import logging


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, falling back to repr and the type name.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _sub_exceptions(exception) -> list:
    try:
        return list(getattr(exception, "exceptions", None) or [])
    except Exception:
        return []


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception, including the members of an exception group.
    Never raises, even for broken exception objects or failing handlers.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[AssetResolver]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        safe_prefix = _safe_str(prefix) if prefix is not None else ""
        sub_exceptions = _sub_exceptions(exception) if exception is not None else []

        if sub_exceptions:
            logger.log(
                level,
                f"{safe_prefix} Exception with {len(sub_exceptions)} sub-exceptions: {_safe_str(exception)}",
            )
            for i, sub_exc in enumerate(sub_exceptions):
                logger.log(
                    level,
                    f"{safe_prefix} Sub-exception {i+1}: {type(sub_exc).__name__}: {_safe_str(sub_exc)}",
                    exc_info=sub_exc,
                )
        else:
            logger.log(
                level,
                f"{safe_prefix} Exception: {_safe_str(exception)}",
                exc_info=exception if exception is not None else False,
            )
    except Exception:
        try:
            logger.log(logging.ERROR, f"{prefix} Exception logging failed")
        except Exception:
            # Nothing left to report with
            pass


def format_exception_message(exception: Exception) -> str:
    """Single line description of an exception, including exception group members."""
    if exception is None:
        return "None"
    sub_exceptions = _sub_exceptions(exception)
    if not sub_exceptions:
        return _safe_str(exception)
    joined = "; ".join(
        f"{type(sub_exc).__name__}: {_safe_str(sub_exc)}" for sub_exc in sub_exceptions
    )
    return f"{_safe_str(exception)} (Sub-exceptions: {joined})"
