# Athena Records
# File: auth.py
# Version: v1

"""AWS Signature Version 4 request signing for the Athena JSON API."""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Callable, Generator, Optional
from urllib.parse import quote

import httpx

from .config import AthenaConfig
from .errors import AthenaServiceError

SERVICE_NAME = "athena"
ALGORITHM = "AWS4-HMAC-SHA256"


def _sha256_hex(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


class SigV4Auth(httpx.Auth):
    """httpx auth flow that signs each request with SigV4.

    Credentials come from the config (AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY and optionally AWS_SESSION_TOKEN).
    """

    requires_request_body = True

    def __init__(
        self,
        config: AthenaConfig,
        service: str = SERVICE_NAME,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.service = service
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _check_config(self) -> None:
        if not self.config.region or not self.config.has_credentials:
            raise AthenaServiceError(
                "AWS configuration is incomplete. "
                "Set ATHENA_REGION (or AWS_REGION), AWS_ACCESS_KEY_ID "
                "and AWS_SECRET_ACCESS_KEY."
            )

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        self.sign(request)
        yield request

    def sign(self, request: httpx.Request) -> None:
        self._check_config()

        now = self._clock()
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")

        request.headers["x-amz-date"] = amz_date
        if self.config.session_token:
            request.headers["x-amz-security-token"] = self.config.session_token

        body = request.content
        payload_hash = _sha256_hex(body)

        signed = sorted(
            name
            for name in ("content-type", "host", "x-amz-date", "x-amz-security-token", "x-amz-target")
            if name in request.headers
        )
        canonical_headers = "".join(
            f"{name}:{' '.join(request.headers[name].split())}\n" for name in signed
        )
        signed_headers = ";".join(signed)

        canonical_query = "&".join(
            f"{quote(k, safe='-_.~')}={quote(v, safe='-_.~')}"
            for k, v in sorted(request.url.params.multi_items())
        )

        canonical_request = "\n".join(
            [
                request.method,
                quote(request.url.path or "/", safe="/-_.~"),
                canonical_query,
                canonical_headers,
                signed_headers,
                payload_hash,
            ]
        )

        scope = f"{date_stamp}/{self.config.region}/{self.service}/aws4_request"
        string_to_sign = "\n".join(
            [ALGORITHM, amz_date, scope, _sha256_hex(canonical_request.encode("utf-8"))]
        )

        k_date = _hmac(f"AWS4{self.config.secret_access_key}".encode("utf-8"), date_stamp)
        k_region = _hmac(k_date, self.config.region or "")
        k_service = _hmac(k_region, self.service)
        k_signing = _hmac(k_service, "aws4_request")
        signature = hmac.new(
            k_signing, string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        request.headers["Authorization"] = (
            f"{ALGORITHM} Credential={self.config.access_key_id}/{scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
