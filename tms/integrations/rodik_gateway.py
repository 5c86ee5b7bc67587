"""
Rodik Integration Gateway.

All outbound HTTP calls to the Rodik REST API go through this class.
Direct `requests` calls in services or blueprints are FORBIDDEN.

  - Static bearer token (RODIK_TOKEN) on every call
  - Timeout: RODIK_TIMEOUT seconds (default 30)
  - Single attempt; no retry, no backoff, no circuit breaker
  - Structured result returned to the service, which decides the HTTP answer

Testability: pass a mock `session` to RodikGateway() in tests instead of
letting it create a real requests.Session internally, or patch the
module-level `rodik_gateway` singleton.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
from flask import current_app

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30


class GatewayResult:
    """Structured return value from RodikGateway calls.

    Attributes:
        ok:             True if the call succeeded (HTTP 2xx + no exception).
        status_code:    HTTP status code (None if network-level failure).
        data:           Parsed JSON response body (dict or list), else None.
        error:          Human-readable error message or None.
        duration_ms:    Round-trip latency in milliseconds.
    """

    def __init__(
        self,
        ok: bool,
        status_code: int | None,
        data: dict | list | None,
        error: str | None,
        duration_ms: int,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.data = data
        self.error = error
        self.duration_ms = duration_ms

    def __repr__(self) -> str:
        return f"<GatewayResult ok={self.ok} status={self.status_code} error={self.error!r}>"


class RodikGateway:
    """Rodik REST API gateway.

    Instantiate once at module level (module-level singleton pattern).
    Base URL, token and timeout are read from the Flask app config on
    each call unless given explicitly.

    Usage:
        from tms.integrations.rodik_gateway import rodik_gateway
        result = rodik_gateway.fetch_requirements(project.rodik_project_id)
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self._session: requests.Session | None = session
        self._base_url = base_url
        self._token = token
        self._timeout = timeout

    # ── HTTP session ─────────────────────────────────────────────────────────

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    # ── Settings ─────────────────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        url = self._base_url or current_app.config["RODIK_API_URL"]
        return url.rstrip("/")

    @property
    def token(self) -> str:
        return self._token or current_app.config.get("RODIK_TOKEN", "tms")

    @property
    def timeout(self) -> int:
        if self._timeout is not None:
            return self._timeout
        return current_app.config.get("RODIK_TIMEOUT", _DEFAULT_TIMEOUT)

    # ── Core request dispatcher ───────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict | list | None = None,
        params: dict | None = None,
    ) -> GatewayResult:
        """Execute one authenticated request against Rodik.

        Returns:
            GatewayResult — always returns (never raises). Callers check .ok.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        timeout = self.timeout
        kwargs: dict[str, Any] = {
            "headers": {
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            "timeout": timeout,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = params

        t0 = time.perf_counter()
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.Timeout:
            logger.warning("Rodik request timed out method=%s url=%s", method, url)
            return GatewayResult(
                ok=False, status_code=None, data=None,
                error=f"Request timed out after {timeout}s",
                duration_ms=int(timeout * 1000),
            )
        except requests.RequestException as exc:
            logger.warning("Rodik network error method=%s url=%s error=%s", method, url, exc)
            return GatewayResult(
                ok=False, status_code=None, data=None,
                error=str(exc)[:500],
                duration_ms=int((time.perf_counter() - t0) * 1000),
            )

        duration_ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            logger.warning(
                "Rodik request failed method=%s status=%d url=%s",
                method, resp.status_code, url,
            )
            return GatewayResult(
                ok=False,
                status_code=resp.status_code,
                data=None,
                error=f"HTTP {resp.status_code}: {resp.text[:500]}",
                duration_ms=duration_ms,
            )

        try:
            data = resp.json() if resp.content else None
        except ValueError:
            return GatewayResult(
                ok=False,
                status_code=resp.status_code,
                data=None,
                error="Rodik returned a non-JSON body",
                duration_ms=duration_ms,
            )
        logger.debug("Rodik %s %s -> %d (%dms)", method, url, resp.status_code, duration_ms)
        return GatewayResult(
            ok=True,
            status_code=resp.status_code,
            data=data,
            error=None,
            duration_ms=duration_ms,
        )

    # ── Rodik specific operations ─────────────────────────────────────────────

    def fetch_requirements(self, rodik_project_id: str) -> GatewayResult:
        """List the requirements of a Rodik project.

        Rodik items ``{id, title, description, createdAt}`` are renamed to
        the local requirement shape ``{id, name, description, created_at}``.
        On success ``result.data`` is that list.
        """
        result = self.request(
            "GET", "/requirements", params={"projectId": rodik_project_id},
        )
        if not result.ok:
            return result

        if not isinstance(result.data, list):
            return GatewayResult(
                ok=False,
                status_code=result.status_code,
                data=None,
                error="Rodik requirements response is not a list",
                duration_ms=result.duration_ms,
            )

        result.data = [_map_requirement(item) for item in result.data if isinstance(item, dict)]
        return result

    def push_test_results(self, results: list[dict]) -> GatewayResult:
        """Report test outcomes to Rodik with a single ``PATCH /tests``.

        Args:
            results: ``[{"id": "<test_case_id>", "status": "PASSED"}, ...]``; Rodik
                expects the id as a decimal string.
        """
        logger.info("Pushing %d test result(s) to Rodik", len(results))
        return self.request("PATCH", "/tests", json_body=results)


def _map_requirement(item: dict) -> dict:
    return {
        "id": item.get("id"),
        "name": item.get("title", ""),
        "description": item.get("description", ""),
        "created_at": item.get("createdAt"),
    }


# Module-level singleton
rodik_gateway = RodikGateway()
