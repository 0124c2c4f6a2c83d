# Athena Records
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where query helpers are exposed as
# MCP tools.  The stdio transport simply calls `register_tools(server)`.

from __future__ import annotations

import os
import time
from contextlib import aclosing
from typing import Any, Dict, List, Optional

from ..client import AthenaClient
from ..coercion import coerce_value, to_json_value
from ..config import AthenaConfig
from ..errors import AthenaRecordsError, AthenaServiceError, RowShapeError
from ..mock import MockAthenaClient
from ..result_schema import resolve_result_schema


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _env_flag(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape used by tools and diagnostics."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


def _cap_int(value: int, cap: int, min_value: int = 1) -> tuple[int, bool]:
    """Clamp an integer to [min_value, cap]. Returns (effective, cap_applied)."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = min_value

    if v < min_value:
        return min_value, True

    if cap > 0 and v > cap:
        return cap, True

    return v, False


def _elapsed_ms(started: float) -> int:
    return int((time.time() - started) * 1000)


def _make_client(cfg: Optional[AthenaConfig] = None) -> AthenaClient:
    """Create an AthenaClient from environment variables.

    If ATHENA_MOCK_MODE is truthy, the in-process mock client is returned
    instead of a real HTTP client.

    Note: Callers should prefer invoking this with *no arguments* so tests
    can monkeypatch _make_client with a no-arg lambda.
    """
    cfg = cfg or AthenaConfig.from_env()

    if cfg.mock_mode or _env_flag("ATHENA_MOCK_MODE", False):
        return MockAthenaClient(config=cfg)

    return AthenaClient(config=cfg)


def _collect_config_info() -> Dict[str, Any]:
    """Redacted snapshot of the Athena configuration."""
    cfg = AthenaConfig.from_env()
    return {
        "region": cfg.region,
        "endpoint": cfg.base_url if (cfg.region or cfg.endpoint_url) else None,
        "workgroup": cfg.workgroup,
        "catalog": cfg.catalog,
        "database": cfg.database,
        "output_location_configured": bool(cfg.output_location),
        "mock_mode": bool(cfg.mock_mode),
        "verify_tls": bool(cfg.verify_tls),
        "credentials": {
            "access_key_configured": bool(cfg.access_key_id),
            "secret_key_configured": bool(cfg.secret_access_key),
            "session_token_configured": bool(cfg.session_token),
        },
        "limits": {
            "max_page_size": cfg.max_page_size,
            "max_rows_query": cfg.max_rows_query,
            "query_timeout_seconds": cfg.query_timeout_seconds,
            "poll_interval_seconds": cfg.poll_interval_seconds,
        },
    }


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    client = _make_client()
    ok = await client.ping()
    return {"ok": bool(ok)}


async def run_query(sql: str, max_rows: Optional[int] = None) -> Dict[str, Any]:
    """Run ``sql`` and return typed rows as JSON-friendly values.

    Cells are converted with the same rules as record mapping, treating
    every column as nullable. Timestamps and dates are ISO-8601 strings.
    """
    started = time.time()
    cfg = AthenaConfig.from_env()
    requested = cfg.max_rows_query if max_rows is None else max_rows
    effective, cap_applied = _cap_int(requested, cfg.max_rows_query, min_value=1)

    client = _make_client()

    columns: List[Dict[str, Any]] = []
    rows: List[List[Any]] = []
    truncated = False
    pages = 0

    try:
        async with aclosing(client.iter_query_pages(sql)) as page_iter:
            async for page in page_iter:
                pages += 1
                ordered = sorted(resolve_result_schema(page.columns), key=lambda c: c.index)
                if not columns:
                    columns = [{"name": c.name, "type": c.type_tag} for c in ordered]

                for row in page.rows:
                    if len(rows) >= effective:
                        truncated = True
                        break
                    if len(row) < len(ordered):
                        raise RowShapeError(len(rows), len(ordered), len(row))
                    rows.append(
                        [
                            to_json_value(coerce_value(row[c.index], c.type_tag, nullable=True))
                            for c in ordered
                        ]
                    )

                if truncated:
                    break
    except AthenaServiceError as exc:
        return {"ok": False, "error": _make_error("BACKEND_ERROR", str(exc))}
    except AthenaRecordsError as exc:
        return {
            "ok": False,
            "error": _make_error("QUERY_ERROR", str(exc), {"type": type(exc).__name__}),
        }

    return {
        "ok": True,
        "columns": [c["name"] for c in columns],
        "column_types": [c["type"] for c in columns],
        "rows": rows,
        "truncated": truncated,
        "meta": {
            "row_count": len(rows),
            "pages": pages,
            "requested_max_rows": requested,
            "effective_max_rows": effective,
            "cap_max_rows": cfg.max_rows_query,
            "cap_applied": bool(cap_applied),
            "elapsed_ms": _elapsed_ms(started),
        },
    }


async def get_config_info() -> Dict[str, Any]:
    return _collect_config_info()


async def diagnostics() -> Dict[str, Any]:
    started = time.time()
    config_info = _collect_config_info()

    checks: List[Dict[str, Any]] = []
    overall_ok = True

    # Client init
    t0 = time.time()
    try:
        client = _make_client()
        checks.append({"name": "client_init", "ok": True, "error": None, "elapsed_ms": _elapsed_ms(t0)})
    except Exception as exc:  # pragma: no cover
        checks.append(
            {
                "name": "client_init",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", str(exc)),
                "elapsed_ms": _elapsed_ms(t0),
            }
        )
        return {
            "ok": False,
            "mock_mode": config_info["mock_mode"],
            "config": config_info,
            "checks": checks,
            "meta": {"elapsed_ms": _elapsed_ms(started)},
        }

    # Ping
    t0 = time.time()
    try:
        ok_ping = await client.ping()
    except Exception as exc:
        ok_ping = False
        ping_error = _make_error("BACKEND_ERROR", str(exc))
    else:
        ping_error = None if ok_ping else _make_error(
            "CONFIG_ERROR", "Region and workgroup must be configured."
        )
    overall_ok = overall_ok and bool(ok_ping)
    checks.append({"name": "ping", "ok": bool(ok_ping), "error": ping_error, "elapsed_ms": _elapsed_ms(t0)})

    # Credentials (the mock client does not sign requests)
    creds = config_info["credentials"]
    creds_ok = config_info["mock_mode"] or (
        creds["access_key_configured"] and creds["secret_key_configured"]
    )
    overall_ok = overall_ok and bool(creds_ok)
    checks.append(
        {
            "name": "credentials",
            "ok": bool(creds_ok),
            "error": None
            if creds_ok
            else _make_error(
                "CONFIG_ERROR", "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
            ),
        }
    )

    return {
        "ok": overall_ok,
        "mock_mode": config_info["mock_mode"],
        "config": config_info,
        "checks": checks,
        "meta": {"elapsed_ms": _elapsed_ms(started)},
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="athena_ping", description="Basic health check for the Athena MCP server.")
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(
        name="athena_run_query",
        description="Run a SQL query on Amazon Athena and return typed rows (capped by ATHENA_MAX_ROWS_QUERY).",
    )
    async def mcp_run_query(sql: str, max_rows: Optional[int] = None) -> Dict[str, Any]:
        return await run_query(sql=sql, max_rows=max_rows)

    @server.tool(name="athena_get_config_info", description="Show the redacted Athena configuration.")
    async def mcp_get_config_info() -> Dict[str, Any]:
        return await get_config_info()

    @server.tool(name="athena_diagnostics", description="Run configuration and connectivity checks.")
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()
