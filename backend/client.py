# backend/client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

import config
from schemas import InvokeRequest, InvokeResponse

JsonObj = Dict[str, Any]


class BackendError(RuntimeError):
    def __init__(self, message: str, *, cmd: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.cmd = cmd
        self.status = status


@dataclass(frozen=True)
class BackendServer:
    base_url: str = config.BACKEND_BASE_URL
    timeout_s: float = config.BACKEND_TIMEOUT_S
    auth_token: Optional[str] = config.BACKEND_AUTH_TOKEN

    @classmethod
    def from_config(cls) -> "BackendServer":
        return cls(
            base_url=str(getattr(config, "BACKEND_BASE_URL", "http://localhost:3420")),
            timeout_s=float(getattr(config, "BACKEND_TIMEOUT_S", 10)),
            auth_token=getattr(config, "BACKEND_AUTH_TOKEN", None),
        )

    def invoke_url(self) -> str:
        return self.base_url.rstrip("/") + "/api/invoke"

    def headers(self) -> Dict[str, str]:
        h = {"Content-Type": "application/json"}
        if self.auth_token:
            h["Authorization"] = f"Bearer {self.auth_token}"
        return h


def invoke(
    server: BackendServer,
    cmd: str,
    args: Optional[JsonObj] = None,
    *,
    session: Optional[requests.Session] = None,
) -> Any:
    """
    POST {base}/api/invoke with {"cmd": ..., "args": {...}}.
    Expected response: {"success": true, "data": ...} or {"success": false, "error": "..."}.
    Returns `data`; raises BackendError for transport errors, non-200 and success=false.
    """
    body = InvokeRequest(cmd=cmd, args=args or {}).model_dump()
    http = session or requests

    if bool(getattr(config, "BACKEND_TRACE", False)):
        print(f"[BACKEND] invoke: {cmd} args={body['args']}")

    try:
        resp = http.post(
            server.invoke_url(),
            json=body,
            headers=server.headers(),
            timeout=server.timeout_s,
        )
    except requests.RequestException as e:
        raise BackendError(
            f"Backend command {cmd!r} failed (url={server.invoke_url()}): {e}", cmd=cmd
        ) from e

    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if resp.status_code != 200:
        detail = ""
        if isinstance(payload, dict):
            detail = str(payload.get("error") or payload.get("message") or "")
        raise BackendError(
            f"Backend command {cmd!r} returned HTTP {resp.status_code}"
            + (f": {detail}" if detail else ""),
            cmd=cmd,
            status=resp.status_code,
        )

    try:
        parsed = InvokeResponse.model_validate(payload)
    except ValidationError as e:
        raise BackendError(
            f"Backend command {cmd!r} returned an invalid response: {e}", cmd=cmd, status=200
        ) from e

    if not parsed.success:
        raise BackendError(
            f"Backend command {cmd!r} failed: {parsed.error or 'unspecified'}", cmd=cmd, status=200
        )

    return parsed.data
