"""
Debug tracing for bson-to-json.

Commands and pipeline steps are traced only when the group was started with
--debug, which is kept on the click context object.
"""
import functools
import inspect
import logging
import time
import click
from typing import Any, Callable, Dict

def is_debug_enabled() -> bool:
    """Check the active click context chain for the DEBUG flag."""
    ctx = click.get_current_context(silent=True)
    while ctx is not None:
        if isinstance(ctx.obj, dict) and ctx.obj.get('DEBUG', False):
            return True
        ctx = ctx.parent
    return False

def _describe(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return repr(value)

def _traced_arguments(func: Callable, args: tuple, kwargs: Dict[str, Any]) -> str:
    """Render call arguments, leaving out the context, self and raw buffers' contents."""
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        return '...'
    return ', '.join(f"{name}={_describe(value)}" for name, value in bound.arguments.items()
                     if name not in ('ctx', 'self') and not name.startswith('_'))

def debug_log(func: Callable) -> Callable:
    """Trace a command's arguments, exit status and duration in debug mode."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not is_debug_enabled():
            return func(*args, **kwargs)

        logger = logging.getLogger(func.__module__)
        logger.debug(f"Running {func.__name__}({_traced_arguments(func, args, kwargs)})")
        started = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except SystemExit as e:
            logger.debug(f"{func.__name__} exited with status {e.code} after {(time.monotonic() - started) * 1000:.1f} ms")
            raise
        except Exception as e:
            logger.debug(f"{func.__name__} failed: {str(e)}")
            raise
        logger.debug(f"{func.__name__} finished in {(time.monotonic() - started) * 1000:.1f} ms")
        return result

    return wrapper

def debug_step(message: str) -> Callable:
    """Log a pipeline step with its arguments before it runs, in debug mode."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if is_debug_enabled():
                logging.getLogger(func.__module__).debug(f"{message}: {_traced_arguments(func, args, kwargs)}")
            return func(*args, **kwargs)
        return wrapper
    return decorator
