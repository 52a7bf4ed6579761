"""ToolResult class for tool adapters.

This module defines the ToolResult class which provides a standardized
result format for all operation handlers.
"""

from typing import Optional


class ToolResult:
    """Result of tool execution.

    Attributes:
        success: Whether the tool execution succeeded
        data: Result data (if successful)
        error: Error message (if failed)
        truncated: Whether output was truncated due to size limit
    """

    # Maximum result size (1MB)
    MAX_SIZE = 1024 * 1024

    def __init__(
        self,
        success: bool,
        data: Optional[str] = None,
        error: Optional[str] = None,
        truncated: bool = False,
    ):
        self.success = success
        self.data = data
        self.error = error
        self.truncated = truncated

    def to_content(self) -> str:
        """Format for the caller.

        Returns:
            Formatted content string
        """
        if self.success:
            result = self.data or ""
            if self.truncated:
                result += "\n\n[Warning: Output truncated due to size limit]"
            return result
        return f"Error: {self.error}"

    @classmethod
    def from_string(cls, content: str, enforce_limit: bool = True) -> "ToolResult":
        """Create a ToolResult from a string, enforcing size limit.

        Args:
            content: The content string
            enforce_limit: Whether to enforce MAX_SIZE limit

        Returns:
            ToolResult with appropriate truncation
        """
        if enforce_limit and len(content.encode("utf-8")) > cls.MAX_SIZE:
            truncated = cls._truncate_to_size(content, cls.MAX_SIZE)
            return cls(success=True, data=truncated, truncated=True)
        return cls(success=True, data=content, truncated=False)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        """Create a failed ToolResult."""
        return cls(success=False, error=error)

    @staticmethod
    def _truncate_to_size(text: str, max_bytes: int) -> str:
        encoded = text.encode("utf-8")
        if len(encoded) <= max_bytes:
            return text

        # Drop any partial multi-byte character at the cut
        return encoded[:max_bytes].decode("utf-8", errors="ignore")

    def __repr__(self) -> str:
        if self.success:
            return f"ToolResult(success={self.success}, truncated={self.truncated}, len={len(self.data) if self.data else 0})"
        return f"ToolResult(success={self.success}, error={self.error})"
