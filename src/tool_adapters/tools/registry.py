"""Operation registry for tool adapters.

This module provides the OperationRegistry class which maps operation names
to tool instances, validates parameters against each tool's declared input
model, and dispatches validated calls to the tool's handler.

A tool is any object exposing:

- ``name``: unique, case-sensitive operation name
- ``description``: human-readable summary
- ``params_model``: pydantic model describing the input shape
- ``parameters``: JSON Schema for the input shape
- ``execute(params)``: async handler returning a ToolResult

A handler reports failure either by raising a ToolError or by returning
``ToolResult.failure(message)``. Both servers turn either one into the same
error response. The database and clock tools raise; the failed-result form
suits tools that catch their own errors and still want to return a message.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import UnknownMethodError, ValidationError
from ..utils.logging import get_logger
from .result import ToolResult

logger = get_logger(__name__)


def parameters_schema(model: type[BaseModel]) -> Dict[str, Any]:
    """JSON Schema for a params model, with an explicit ``required`` list."""
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    schema.setdefault("required", [])
    return schema


def _describe_validation_error(error: PydanticValidationError) -> tuple[Optional[str], str]:
    """Return the first offending field and a readable message."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    message = first.get("msg", "invalid value")
    if field:
        return field, f"Invalid params: {field}: {message}"
    return None, f"Invalid params: {message}"


class OperationRegistry:
    """Registry of named operations.

    Populated once at startup and treated as immutable afterwards.
    """

    def __init__(self):
        self._tools: Dict[str, Any] = {}

    def register(self, tool: Any) -> None:
        """Register a tool instance.

        Args:
            tool: Tool instance with name, description, params_model, and execute method

        Raises:
            ValueError: If the tool has no name or the name is already registered
        """
        name = getattr(tool, "name", None)
        if not name:
            raise ValueError("Tool must have a 'name' property")
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = tool
        logger.debug(f"Registered operation {name}")

    def get(self, name: str) -> Optional[Any]:
        """Get tool by name.

        Args:
            name: Tool name

        Returns:
            Tool instance or None if not found
        """
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools)

    def list_all(self) -> List[Any]:
        return list(self._tools.values())

    def to_mcp_list(self) -> List[Dict[str, Any]]:
        """Export all tools in MCP ``tools/list`` format.

        Returns:
            List of dictionaries: [{"name": ..., "description": ..., "inputSchema": {...}}, ...]
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.parameters,
            }
            for tool in self._tools.values()
        ]

    def validate(self, name: Optional[str], arguments: Any) -> BaseModel:
        """Validate arguments for an operation.

        Args:
            name: Operation name
            arguments: Raw parameters (must be a mapping)

        Returns:
            Typed params instance for the tool's handler

        Raises:
            UnknownMethodError: If the operation is not registered
            ValidationError: If the arguments do not match the input shape
        """
        tool = self._tools.get(name) if isinstance(name, str) else None
        if tool is None:
            raise UnknownMethodError(name)

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValidationError("Invalid params: expected an object")

        try:
            return tool.params_model.model_validate(arguments)
        except PydanticValidationError as e:
            field, message = _describe_validation_error(e)
            raise ValidationError(message, field=field) from e

    async def dispatch(self, name: Optional[str], arguments: Any) -> ToolResult:
        """Validate arguments and run the operation.

        The handler is never invoked when validation fails.

        Args:
            name: Operation name
            arguments: Raw parameters

        Returns:
            The handler's ToolResult

        Raises:
            UnknownMethodError: If the operation is not registered
            ValidationError: If the arguments are invalid
            ToolError: Propagated from the handler
        """
        params = self.validate(name, arguments)
        logger.debug(f"Dispatching {name}")
        return await self._tools[name].execute(params)
