"""Human-readable hints for backend exit codes.

The hints are diagnostics only; every unexpected exit is treated as a crash
regardless of which hint it maps to.
"""

from __future__ import annotations

from typing import Optional

from .types import ProcessExit

EXIT_CODE_GENERIC_ERROR = 1
EXIT_CODE_NOT_EXECUTABLE = 126
EXIT_CODE_COMMAND_NOT_FOUND = 127

_NOT_EXECUTABLE_HINT = (
    "Exit code 126: Permission denied or script not executable.\n\n"
    "This usually means:\n"
    "1. The backend start script is not executable\n"
    "2. The script has incorrect permissions"
)
_COMMAND_NOT_FOUND_HINT = (
    "Exit code 127: Command not found.\n\n"
    "The script tried to run a command that does not exist."
)
_GENERIC_ERROR_HINT = (
    "The backend script encountered an error. Check that:\n"
    "1. All dependencies are installed\n"
    "2. Your .env file is configured\n"
    "3. The project path is correct"
)


def exit_hint(process_exit: ProcessExit) -> Optional[str]:
    """Return a troubleshooting hint for ``process_exit``, if one applies."""
    if process_exit.exit_code is None:
        if process_exit.signal_name:
            return f"The backend was terminated by {process_exit.signal_name}."
        return None
    if process_exit.exit_code == EXIT_CODE_NOT_EXECUTABLE:
        return _NOT_EXECUTABLE_HINT
    if process_exit.exit_code == EXIT_CODE_COMMAND_NOT_FOUND:
        return _COMMAND_NOT_FOUND_HINT
    if process_exit.exit_code == EXIT_CODE_GENERIC_ERROR:
        return _GENERIC_ERROR_HINT
    if process_exit.exit_code == 0:
        return "The backend exited cleanly before it started serving."
    return None


def describe_exit(process_exit: ProcessExit) -> str:
    """Summarize an unexpected exit, with its hint appended when there is one."""
    if process_exit.exit_code is not None:
        message = f"Backend process exited unexpectedly with code {process_exit.exit_code}"
    elif process_exit.signal_name:
        message = f"Backend process exited unexpectedly after signal {process_exit.signal_name}"
    else:
        message = "Backend process exited unexpectedly"

    hint = exit_hint(process_exit)
    if hint:
        return f"{message}\n\n{hint}"
    return message


__all__ = [
    "EXIT_CODE_COMMAND_NOT_FOUND",
    "EXIT_CODE_GENERIC_ERROR",
    "EXIT_CODE_NOT_EXECUTABLE",
    "describe_exit",
    "exit_hint",
]
