# Athena Records
# File: config.py
# Version: v1

"""Configuration loading for the Athena client and MCP server."""

from __future__ import annotations

from dataclasses import dataclass
import os

# GetQueryResults refuses MaxResults above this.
MAX_ALLOWED_PAGE_SIZE = 1000


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_float_env(
    name: str,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Float counterpart of _parse_int_env."""
    raw = os.getenv(name)
    try:
        value = float(str(raw).strip()) if raw is not None and str(raw).strip() else default
    except ValueError:
        value = default

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _first_env(*names: str) -> str | None:
    for name in names:
        val = os.getenv(name)
        if val:
            return val
    return None


@dataclass
class AthenaConfig:
    """Settings required to run queries against Amazon Athena."""

    region: str | None
    workgroup: str
    database: str | None
    catalog: str
    output_location: str | None = None
    endpoint_url: str | None = None

    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None

    mock_mode: bool = False
    verify_tls: bool = True

    # Query lifecycle
    poll_interval_seconds: float = 1.0
    max_page_size: int = MAX_ALLOWED_PAGE_SIZE
    query_timeout_seconds: float = 0.0
    http_timeout_seconds: float = 30.0

    # Hard cap for the row-returning MCP tool
    max_rows_query: int = 500

    log_level: str = "WARNING"

    @property
    def base_url(self) -> str:
        if self.endpoint_url:
            return self.endpoint_url.rstrip("/")
        return f"https://athena.{self.region}.amazonaws.com"

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    @classmethod
    def from_env(cls) -> "AthenaConfig":
        """Create configuration from environment variables."""
        region = _first_env("ATHENA_REGION", "AWS_REGION", "AWS_DEFAULT_REGION")

        max_page_size = _parse_int_env(
            "ATHENA_MAX_PAGE_SIZE",
            default=MAX_ALLOWED_PAGE_SIZE,
            min_value=1,
            max_value=MAX_ALLOWED_PAGE_SIZE,
        )
        max_rows_query = _parse_int_env(
            "ATHENA_MAX_ROWS_QUERY", default=500, min_value=1, max_value=100000
        )

        poll_interval_seconds = _parse_float_env(
            "ATHENA_POLL_INTERVAL_SECONDS", default=1.0, min_value=0.0, max_value=60.0
        )
        query_timeout_seconds = _parse_float_env(
            "ATHENA_QUERY_TIMEOUT_SECONDS", default=0.0, min_value=0.0, max_value=86400.0
        )
        http_timeout_seconds = _parse_float_env(
            "ATHENA_HTTP_TIMEOUT_SECONDS", default=30.0, min_value=1.0, max_value=600.0
        )

        return cls(
            region=region,
            workgroup=os.getenv("ATHENA_WORKGROUP") or "primary",
            database=os.getenv("ATHENA_DATABASE"),
            catalog=os.getenv("ATHENA_CATALOG") or "AwsDataCatalog",
            output_location=os.getenv("ATHENA_OUTPUT_LOCATION"),
            endpoint_url=os.getenv("ATHENA_ENDPOINT_URL"),
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            session_token=os.getenv("AWS_SESSION_TOKEN"),
            mock_mode=_parse_bool_env("ATHENA_MOCK_MODE", default=False),
            verify_tls=_parse_bool_env("ATHENA_VERIFY_TLS", default=True),
            poll_interval_seconds=poll_interval_seconds,
            max_page_size=max_page_size,
            query_timeout_seconds=query_timeout_seconds,
            http_timeout_seconds=http_timeout_seconds,
            max_rows_query=max_rows_query,
            log_level=(os.getenv("ATHENA_LOG_LEVEL") or "WARNING").strip().upper(),
        )
