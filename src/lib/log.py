"""
Logging for annocode, built on Loguru.

LOG() decides per call whether to emit, using the verbosity of the
ProgramState bound to the current context. Library code never receives the
state explicitly; the CLI binds it once and every transform, the highlighter
and the document renderer see it.

Notes:
- The binding lives in a ContextVar, so blocks rendered concurrently with
  asyncio.gather all see the state that was bound when they were spawned
- Without a bound state (annocode used as a library) the threshold comes
  from ANNOCODE_LOG_VERBOSITY
- Author mistakes are logged at WARNING, failed blocks at ERROR

Usage:
    from annocode.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG("Rendering 3 code blocks", level=2)
    LOG("Line 4: highlight start 80 is past the end of the line", severity="WARNING")
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

# ProgramState bound by the CLI, None when used as a library
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

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
    Bind a ProgramState (or None to unbind) for LOG() calls.

    Tasks created after the call inherit the binding, so binding once in
    main() covers every block render.

    Args:
        state: Object with a verbosity attribute, normally the ProgramState
    """
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the bound state, or the configured library default"""
    state = _program_state.get()
    if state is not None and hasattr(state, 'verbosity'):
        return state.verbosity
    return appsettings.log_verbosity


def LOG(message: str, level: int = 1, severity: str = "DEBUG", **kwargs: Any) -> None:
    """
    Emit message when the current verbosity reaches level.

    Args:
        message: Text to log
        level: Verbosity needed to see the message: 1 for progress and
            problems, 2 for per-block details (-v), 3 for per-line
            tracing (-vv)
        severity: Loguru level name for the record
        **kwargs: Passed through to loguru

    Verbosity 0 silences everything, including warnings.
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).log(severity, message, **kwargs)
