"""Current date/time tool.

An unknown timezone never fails the call: the formatter falls back to UTC
and says so in the returned text.
"""

from datetime import datetime, timezone as dt_timezone, tzinfo
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import DEFAULT_TIMEZONE
from ..errors import TimezoneError
from ..utils.logging import get_logger
from .registry import parameters_schema
from .result import ToolResult

logger = get_logger(__name__)

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_timezone(zone: str) -> tzinfo:
    """Look up an IANA timezone.

    Raises:
        TimezoneError: If the identifier is not a recognized zone
    """
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimezoneError(zone) from e


def format_current_datetime(
    timezone: Optional[str] = None,
    now: Optional[datetime] = None,
    default_timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """Format the current date and time for a timezone.

    Args:
        timezone: IANA zone name; falls back to default_timezone when empty
        now: Instant to format (defaults to the current time)
        default_timezone: Zone used when none is supplied

    Returns:
        ``"YYYY-MM-DD HH:MM:SS (Timezone: <zone>)"``, or the UTC time followed
        by a fallback warning when the zone is not recognized
    """
    if now is None:
        now = datetime.now(dt_timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)

    target = timezone or default_timezone
    try:
        zone = resolve_timezone(target)
    except TimezoneError:
        logger.warning(f"Invalid timezone {target!r}, falling back to UTC")
        stamp = now.astimezone(dt_timezone.utc).strftime(DATETIME_FORMAT)
        return f"{stamp} (Invalid timezone provided: {target}. Falling back to UTC)"

    return f"{now.astimezone(zone).strftime(DATETIME_FORMAT)} (Timezone: {target})"


class GetCurrentDateTimeParams(BaseModel):
    """Parameters for getCurrentDateTime."""

    model_config = ConfigDict(extra="ignore")

    timezone: Optional[str] = Field(
        None,
        strict=True,
        description="Optional timezone string (e.g., 'America/New_York', 'Europe/London').",
    )


class GetCurrentDateTimeTool:
    """Tool for getting the current date and time in a timezone."""

    params_model = GetCurrentDateTimeParams

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE) -> None:
        self.default_timezone = default_timezone

    @property
    def name(self) -> str:
        return "getCurrentDateTime"

    @property
    def description(self) -> str:
        return (
            f"Returns the current date and time, defaulting to {self.default_timezone}. "
            "Optionally accepts a 'timezone' argument (e.g., 'Europe/London') to format the time for that zone."
        )

    @property
    def parameters(self) -> Dict[str, Any]:
        return parameters_schema(self.params_model)

    async def execute(self, params: GetCurrentDateTimeParams) -> ToolResult:
        return ToolResult(
            success=True,
            data=format_current_datetime(params.timezone, default_timezone=self.default_timezone),
        )
