"""Line protocol messages.

One JSON object per line in each direction:

- request: ``{"id": <any>, "method": <string>, "params": {...}}``
- success: ``{"id": <same id>, "result": <payload>}``
- failure: ``{"id": <same id or null>, "error": <message>}``

The id is never interpreted, only echoed.
"""

import json
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import ParseError


class LineRequest(BaseModel):
    """Decoded request line.

    Attributes:
        id: Correlation token echoed in the response
        method: Requested operation name (raw, may be missing or non-string)
        params: Operation parameters (raw, validated later by the registry)
    """

    model_config = ConfigDict(extra="ignore")

    id: Any = Field(None, description="Correlation token")
    method: Any = Field(None, description="Operation name")
    params: Any = Field(None, description="Operation parameters")


class LineResponse(BaseModel):
    """Response line carrying exactly one of result or error."""

    id: Any = Field(None, description="Correlation token of the originating request")
    result: Optional[Any] = Field(None, description="Success payload")
    error: Optional[str] = Field(None, description="Human-readable failure message")

    @model_validator(mode="after")
    def exactly_one_outcome(self) -> "LineResponse":
        if (self.result is None) == (self.error is None):
            raise ValueError("Response must carry exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: Any, result: Any) -> "LineResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Any, error: str) -> "LineResponse":
        return cls(id=request_id, error=error)

    def to_line(self) -> str:
        """Serialize as one compact JSON line (without the trailing newline)."""
        payload: dict[str, Any] = {"id": self.id}
        if self.error is not None:
            payload["error"] = self.error
        else:
            payload["result"] = self.result
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def decode_request(line: Union[str, bytes]) -> LineRequest:
    """Decode one input line.

    Args:
        line: Raw line, as text or as UTF-8 bytes

    Returns:
        LineRequest

    Raises:
        ParseError: If the line is not valid UTF-8 or not a JSON object
    """
    try:
        text = line.decode("utf-8") if isinstance(line, bytes) else line
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Parse error: {e.msg}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"Parse error: invalid UTF-8 at byte {e.start}") from e
    except (ValueError, RecursionError) as e:
        # Oversized integer literals and excessive nesting
        raise ParseError(f"Parse error: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Parse error: expected a JSON object")

    return LineRequest.model_validate(data)
