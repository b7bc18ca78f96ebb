"""Runtime configuration model for sweepwatch.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_API_URL,
    DEFAULT_DATA_ROOT,
    DEFAULT_DUMP_URL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    PROJECT_NAME,
    PROJECT_VERSION,
)
from core.errors import SweepConfigError


@dataclass(frozen=True)
class SweepConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding dumps and region stores.
        user_nation: Nation identifying the operator to the world API.
        program: Optional calling program name and version.
        api_url: World API endpoint used for tag queries.
        dump_url: Download URL of the current regions dump.
        http_timeout: Seconds allowed per HTTP request.
        seed_nations: Whether to populate Nation rows from the dump.
    """

    data_root: Path
    user_nation: str | None
    program: str | None
    api_url: str = DEFAULT_API_URL
    dump_url: str = DEFAULT_DUMP_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    seed_nations: bool = True

    @classmethod
    def from_env(cls) -> "SweepConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SweepConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("SWEEPWATCH_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        timeout_value = os.getenv("SWEEPWATCH_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            user_nation=os.getenv("SWEEPWATCH_USER_NATION") or None,
            program=os.getenv("SWEEPWATCH_PROGRAM") or None,
            api_url=os.getenv("SWEEPWATCH_API_URL", DEFAULT_API_URL),
            dump_url=os.getenv("SWEEPWATCH_DUMP_URL", DEFAULT_DUMP_URL),
            http_timeout=_parse_http_timeout(timeout_value),
        )

    def user_agent(self) -> str:
        """Build the User-Agent sent with every world API request.

        Returns:
            User-Agent header value.

        Raises:
            SweepConfigError: If no user nation is configured.
        """
        if not self.user_nation:
            raise SweepConfigError(
                "Missing user nation for world API requests. "
                "Pass --nation or set SWEEPWATCH_USER_NATION."
            )
        agent = f"{PROJECT_NAME}/{PROJECT_VERSION} (in use by {self.user_nation})"
        if self.program:
            agent = f"{agent} via {self.program}"
        return agent


def _parse_http_timeout(raw_value: str) -> float:
    """Parse the HTTP timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive timeout in seconds.

    Raises:
        SweepConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise SweepConfigError(
            "Invalid SWEEPWATCH_HTTP_TIMEOUT value: "
            f"expected number, got '{raw_value}'. "
            "Set SWEEPWATCH_HTTP_TIMEOUT to a numeric value."
        ) from error
    if timeout <= 0:
        raise SweepConfigError(
            f"Invalid SWEEPWATCH_HTTP_TIMEOUT value: {raw_value} must be greater than zero."
        )
    return timeout
