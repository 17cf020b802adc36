"""Search session lifecycle, process launching and caching."""

from .cache import SessionCache, SessionKey, make_key
from .invocation import (
    CaseMode,
    ContextDepth,
    FileFilter,
    InvalidConfigurationError,
    InvocationSpec,
    SearchSettings,
    SearchType,
    build_invocation,
)
from .machine import (
    DEFAULT_EXECUTABLE,
    ProcessTerminationTimeout,
    ProcessTiming,
    Session,
    SessionState,
    SessionStateError,
    TerminationKind,
    TerminationStatus,
    classify_exit,
)
from .process import (
    ProcessHandle,
    ProcessLaunchError,
    ProcessLauncher,
    SubprocessHandle,
    SubprocessLauncher,
)

__all__ = [
    "CaseMode",
    "ContextDepth",
    "DEFAULT_EXECUTABLE",
    "FileFilter",
    "InvalidConfigurationError",
    "InvocationSpec",
    "ProcessHandle",
    "ProcessLaunchError",
    "ProcessLauncher",
    "ProcessTerminationTimeout",
    "ProcessTiming",
    "SearchSettings",
    "SearchType",
    "Session",
    "SessionCache",
    "SessionKey",
    "SessionState",
    "SessionStateError",
    "SubprocessHandle",
    "SubprocessLauncher",
    "TerminationKind",
    "TerminationStatus",
    "build_invocation",
    "classify_exit",
    "make_key",
]
