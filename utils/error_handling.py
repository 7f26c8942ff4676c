import functools
import logging
from typing import Type

from utils.exceptions import HyperbandError

def handle_engine_errors(operation_name: str, error_cls: Type[HyperbandError] = HyperbandError,
                         wrap_known: bool = False):
    """
    Decorator for consistent error handling in engines.

    Args:
        operation_name: Label used in the log line and the raised message.
        error_cls: Exception type unexpected errors are wrapped in.
        wrap_known: Also wrap HyperbandError subclasses (other than error_cls)
            raised by code outside this package, e.g. a Trainer implementation.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HyperbandError as e:
                # Re-raise our custom exceptions
                if not wrap_known or isinstance(e, error_cls):
                    raise
                _log_failure(args, operation_name, e)
                raise error_cls(f"{operation_name} failed: {str(e)}") from e
            except Exception as e:
                # Wrap unexpected errors
                _log_failure(args, operation_name, e)
                raise error_cls(f"{operation_name} failed: {str(e)}") from e
        return wrapper
    return decorator

def _log_failure(args, operation_name: str, error: Exception) -> None:
    logger = args[0].logger if args and hasattr(args[0], 'logger') else logging.getLogger()
    logger.error(f"{operation_name} failed: {error}", exc_info=True)
