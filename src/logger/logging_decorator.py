"""
Centralized Logging Utilities and Decorators

Provides reusable logging setup and function decorators for consistent logging
across the transcript worker.

Usage:
    from src.logger import setup_logging, log_function

    # Setup logging for a module
    logger = setup_logging(
        logger_name="transcript_worker",
        log_file="logs/transcript_worker.log",
        verbose=True
    )

    # Decorate functions (sync or async) for automatic logging
    @log_function(logger_name="transcript_worker", log_args=True)
    async def fetch(feed_url, guid):
        ...
"""

import functools
import inspect
import logging
import os
import time
from pathlib import Path
from typing import Optional, Callable, Any


LOG_DIR_ENV = "LOG_DIR"
DEFAULT_LOG_DIR = "logs"


def default_log_file(name: str) -> str:
    """Return ``<LOG_DIR>/<name>.log``, LOG_DIR defaulting to ``logs``."""
    return str(Path(os.getenv(LOG_DIR_ENV, DEFAULT_LOG_DIR)) / f"{name}.log")


def setup_logging(
    logger_name: str,
    log_file: Optional[str] = None,
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging with file and optional console handlers.

    Args:
        logger_name: Name for the logger (e.g., "transcript_worker")
        log_file: Path to log file (default: "<LOG_DIR>/app.log")
        verbose: If True, add console handler with DEBUG level (default: False)
        level: Base logging level (default: logging.INFO)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logging("taddy_client", "logs/taddy_client.log", verbose=True)
        logger.info("Client started")
    """
    logger = logging.getLogger(logger_name)

    # Avoid adding multiple handlers if already configured
    if logger.handlers:
        if verbose:
            _add_console_handler(logger)
            logger.setLevel(logging.DEBUG)
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    # Create logs directory if needed
    log_path = Path(log_file or default_log_file("app"))
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # File handler for detailed logging
    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(level)
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    if verbose:
        _add_console_handler(logger)

    return logger


def _add_console_handler(logger: logging.Logger) -> None:
    if any(getattr(h, "_console", False) for h in logger.handlers):
        return
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    console_handler._console = True
    logger.addHandler(console_handler)


def _resolve_logger(
    logger_name: str, func_name: str, log_file: Optional[str], level: int
) -> logging.Logger:
    if log_file:
        return setup_logging(
            logger_name=f"{logger_name}.{func_name}",
            log_file=log_file,
            level=level,
        )
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger = setup_logging(logger_name, default_log_file(logger_name), level=level)
    return logger


def _call_message(func_name: str, log_args: bool, args: tuple, kwargs: dict) -> str:
    log_msg = f"Calling {func_name}"
    if log_args and (args or kwargs):
        args_repr = [repr(a) for a in args]
        kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
        log_msg += f" with args: {', '.join(args_repr + kwargs_repr)}"
    return log_msg


def _completion_message(
    func_name: str,
    execution_time: float,
    log_execution_time: bool,
    log_result: bool,
    result: Any,
) -> str:
    completion_msg = f"Completed {func_name}"
    if log_execution_time:
        completion_msg += f" in {execution_time:.2f}s"
    if log_result:
        completion_msg += f" with result: {result!r}"
    return completion_msg


def log_function(
    logger_name: Optional[str] = None,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator to automatically log function entry, exit, execution time, and exceptions.

    Coroutine functions are wrapped with an async wrapper so the timing covers
    the awaited body rather than coroutine creation.

    Args:
        logger_name: Custom logger name (if None, uses the decorated function's module name)
        log_file: Optional custom log file path (if None, uses existing logger config)
        level: Log level for entry/exit messages (default: logging.INFO)
        log_args: If True, log function arguments (default: False)
        log_result: If True, log return value (default: False)
        log_execution_time: If True, log execution duration (default: True)

    Returns:
        Decorated function with logging

    Example:
        @log_function(logger_name="database", log_args=True, log_execution_time=True)
        def upsert_transcript(session, episode_id, status):
            ...
    """

    def decorator(func: Callable) -> Callable:
        name = logger_name or func.__module__
        func_name = func.__name__

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger = _resolve_logger(name, func_name, log_file, level)
                logger.log(level, _call_message(func_name, log_args, args, kwargs))
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    execution_time = time.time() - start_time
                    logger.error(
                        f"Exception in {func_name} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                        exc_info=True,
                    )
                    raise
                logger.log(
                    level,
                    _completion_message(
                        func_name,
                        time.time() - start_time,
                        log_execution_time,
                        log_result,
                        result,
                    ),
                )
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = _resolve_logger(name, func_name, log_file, level)
            logger.log(level, _call_message(func_name, log_args, args, kwargs))
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                execution_time = time.time() - start_time
                logger.error(
                    f"Exception in {func_name} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                    exc_info=True,
                )
                raise
            logger.log(
                level,
                _completion_message(
                    func_name,
                    time.time() - start_time,
                    log_execution_time,
                    log_result,
                    result,
                ),
            )
            return result

        return wrapper

    return decorator


# Convenience decorators for common use cases


def log_with_timer(logger_name: Optional[str] = None) -> Callable:
    """
    Simple decorator that logs function entry/exit with execution time.

    Example:
        @log_with_timer("storage")
        def upload(path, data):
            ...
    """
    return log_function(
        logger_name=logger_name,
        log_args=False,
        log_result=False,
        log_execution_time=True,
    )
