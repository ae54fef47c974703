"""Verification — external checks run after passes."""

from optipass.verify.models import (
    CheckResult,
    CommandOutput,
    VerificationOutcome,
    VerificationStatus,
)
from optipass.verify.runner import (
    CommandUnavailable,
    ExternalCommand,
    ShellCommand,
    VerificationRunner,
    commands_from_config,
    detect_commands,
    resolve_commands,
)

__all__ = [
    "CheckResult",
    "CommandOutput",
    "CommandUnavailable",
    "ExternalCommand",
    "ShellCommand",
    "VerificationOutcome",
    "VerificationRunner",
    "VerificationStatus",
    "commands_from_config",
    "detect_commands",
    "resolve_commands",
]
