"""Error taxonomy for tool adapters.

Every error that can reach a server boundary derives from ToolError and is
turned into an error response there. TimezoneError is the exception: the
datetime formatter recovers from it locally.
"""

from typing import Optional


class ToolError(Exception):
    """Base class for operation failures reported back to the caller."""

    kind = "tool_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ParseError(ToolError):
    """Input line is not a well-formed JSON object."""

    kind = "parse_error"


class ValidationError(ToolError):
    """Operation parameters are missing or have the wrong type.

    Attributes:
        field: Name of the offending parameter (if known)
    """

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class UnknownMethodError(ToolError):
    """Requested operation is not registered."""

    kind = "unknown_method"

    def __init__(self, method: Optional[str]) -> None:
        super().__init__(f"Unknown method: {method if method is not None else '(missing)'}")
        self.method = method


class ProcessError(ToolError):
    """External command failed to complete successfully.

    Attributes:
        stderr: Captured standard error of the child
        exit_status: Exit code, or None when the process never ran to completion
    """

    kind = "process_error"

    def __init__(self, message: str, stderr: str = "", exit_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.exit_status = exit_status


class TimezoneError(ToolError):
    """Timezone identifier is not recognized."""

    kind = "timezone_error"

    def __init__(self, zone: str) -> None:
        super().__init__(f"Unknown timezone: {zone}")
        self.zone = zone
