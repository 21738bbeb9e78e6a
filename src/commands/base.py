"""
Base classes for the commands layer.

CommandResult provides a consistent return type across all commands, so
the CLI and the web API can render the same outcome their own way.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResultStatus(Enum):
    """Command execution status."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    NOT_FOUND = "not_found"


@dataclass
class CommandResult:
    """
    Unified result type for all commands.

    Attributes:
        success: Whether the command succeeded
        status: Detailed status enum
        message: Human-readable message
        data: Command-specific result data
        error: Error message if failed
    """
    success: bool
    status: ResultStatus = ResultStatus.SUCCESS
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "Success", data: Dict[str, Any] = None) -> 'CommandResult':
        """Create a successful result."""
        return cls(success=True, status=ResultStatus.SUCCESS, message=message, data=data or {})

    @classmethod
    def fail(cls, message: str, error: str = None, data: Dict[str, Any] = None) -> 'CommandResult':
        """Create a failed result."""
        return cls(
            success=False,
            status=ResultStatus.ERROR,
            message=message,
            error=error or message,
            data=data or {},
        )

    @classmethod
    def warn(cls, message: str, data: Dict[str, Any] = None) -> 'CommandResult':
        """Create a warning result (succeeded, but nothing changed)."""
        return cls(success=True, status=ResultStatus.WARNING, message=message, data=data or {})

    @classmethod
    def not_found(cls, message: str) -> 'CommandResult':
        """Create a not-found result (unknown session, participant or callsign)."""
        return cls(success=False, status=ResultStatus.NOT_FOUND, message=message, error=message)
