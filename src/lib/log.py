"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the current ProgramState's
verbosity level without requiring explicit state passing. Because the state
lives in a ContextVar, every asyncio task spawned during a build inherits the
verbosity of the pipeline stage that started it.

Usage:
    from docweave.lib.log import LOG, WARN, state_connectToLogger

    # At start of pipeline function:
    state_connectToLogger(state)

    # Anywhere in that context (including page-processing tasks):
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Debug details appear if verbosity >= 2", level=2)
    WARN("Always shown: an authoring mistake or a non-fatal failure")
"""

from loguru import logger
from typing import Any, Callable, Optional
from contextvars import ContextVar
import sys
import time

# Context variable to hold current ProgramState
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

# Configure loguru with docweave-specific format
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a ProgramState to the logging context.

    Call this at the start of the pipeline to make the state's verbosity
    setting available to LOG() calls throughout that context.

    Args:
        state: ProgramState instance with verbosity attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    Verbosity levels:
        1 = Normal output (default)
        2 = Verbose (-v)
        3 = Debug (-vv or higher)
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, **kwargs: Any) -> None:
    """Log a warning regardless of verbosity (diagnostics, non-fatal failures)"""
    logger.opt(depth=1).warning(message, **kwargs)


def tic() -> Callable[[str], str]:
    """
    Start a timer for build messages.

    Returns a formatter that substitutes the elapsed time for '%s'.

    Example:
        toc = tic()
        ...
        LOG(toc("Built 3 pages in %s."))
    """
    start = time.perf_counter()

    def toc(template: str) -> str:
        elapsed = time.perf_counter() - start
        if elapsed < 1:
            stamp = f"{elapsed * 1000:.1f} ms"
        else:
            stamp = f"{elapsed:.2f} s"
        return template.replace('%s', stamp)

    return toc
