"""
provider_module/dyn_client.py

Async client for the DynECT managed DNS REST API, limited to what the audit
consumes.

Public API (all coroutines):
- login(customer, username, password)      opens a session (Auth-Token)
- logout()                                 closes it, never raises
- list_zones() -> List[str]                zone paths, e.g. "/REST/Zone/example.com/"
- get_zone(name) -> Zone                   name + serial
- list_records(zone) -> List[str]          record paths, e.g. "/REST/ARecord/example.com/www.example.com/123"
- get_record(path) -> ZoneRecord           type, fqdn, TTL and address / CNAME target

Every API reply is a JSON envelope:
    {"status": "success" | "failure" | "incomplete", "data": ..., "job_id": ..., "msgs": [...]}
Long-running requests answer "incomplete" (HTTP 307) and are polled through
/REST/Job/<job_id>/. Transport errors, timeouts, HTTP errors and "failure"
replies raise FetchError (AuthenticationError when opening the session).

Usage:
    async with DynClient(api_url, timeout=30) as client:
        await client.login(customer, user, password)
        ...
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from scan_module.errors import AuthenticationError, FetchError
from scan_module.logger import get_child_logger
from scan_module.settings import DEFAULT_API_URL
from scan_module.zone_records import Zone, ZoneRecord

log = get_child_logger("dyn_client")

REST_PREFIX = "/REST/"
JOB_POLL_ATTEMPTS = 10
JOB_POLL_DELAY_S = 1.0


def _messages(body: Any) -> List[str]:
    """Pull the human-readable INFO strings out of the `msgs` list."""
    if not isinstance(body, dict):
        return []
    out: List[str] = []
    for m in body.get("msgs") or []:
        if isinstance(m, dict):
            info = m.get("INFO") or m.get("ERR_CD")
            if info:
                out.append(str(info))
        elif m:
            out.append(str(m))
    return out


def _rest_path(path: str) -> str:
    """Accept both full paths (/REST/Zone/x/) and relative ones (Zone/x/)."""
    p = (path or "").strip()
    if p.startswith(REST_PREFIX):
        p = p[len(REST_PREFIX):]
    return p.lstrip("/")


class DynClient:
    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        verbose: bool = False,
        session: Optional[aiohttp.ClientSession] = None,
        job_poll_attempts: int = JOB_POLL_ATTEMPTS,
        job_poll_delay: float = JOB_POLL_DELAY_S,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.verbose = verbose
        self.job_poll_attempts = job_poll_attempts
        self.job_poll_delay = job_poll_delay
        self._session = session
        self._owns_session = session is None
        self._token: Optional[str] = None

    async def __aenter__(self) -> "DynClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    # ---- transport ----
    async def _exchange(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Tuple[int, Dict[str, Any]]:
        if self._session is None:
            raise FetchError("client session is not open (use 'async with DynClient(...)')")

        url = f"{self.api_url}{REST_PREFIX}{_rest_path(path)}"
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Auth-Token"] = self._token
        if self.verbose:
            log.debug("{} {}", method, url)

        try:
            async with self._session.request(
                method, url, json=payload, headers=headers, allow_redirects=False
            ) as r:
                status = r.status
                body = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"{method} {path}: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise FetchError(f"{method} {path}: response is not JSON") from e

        if not isinstance(body, dict):
            raise FetchError(f"{method} {path}: unexpected response (HTTP {status})")
        return status, body

    async def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        status, body = await self._exchange(method, path, payload)

        # 307 + job_id: the request is still running on the API side
        if status == 307 or body.get("status") == "incomplete":
            job_id = body.get("job_id")
            if not job_id:
                raise FetchError(f"{method} {path}: incomplete response without job id", _messages(body))
            for _ in range(self.job_poll_attempts):
                await asyncio.sleep(self.job_poll_delay)
                status, body = await self._exchange("GET", f"Job/{job_id}/")
                if status != 307 and body.get("status") != "incomplete":
                    break
            else:
                raise FetchError(f"{method} {path}: job {job_id} still incomplete", _messages(body))

        if status >= 400 or body.get("status") != "success":
            raise FetchError(f"{method} {path} failed (HTTP {status})", _messages(body))
        return body

    async def _get_data(self, path: str) -> Any:
        body = await self._send("GET", path)
        return body.get("data")

    # ---- session ----
    async def login(self, customer: str, username: str, password: str) -> None:
        payload = {"customer_name": customer, "user_name": username, "password": password}
        try:
            body = await self._send("POST", "Session/", payload)
        except FetchError as e:
            raise AuthenticationError(f"login failed for {username}@{customer}: {e}", e.messages) from e
        token = (body.get("data") or {}).get("token")
        if not token:
            raise AuthenticationError("login reply carried no session token", _messages(body))
        self._token = token
        log.info("Logged in as {}@{}", username, customer)

    async def logout(self) -> None:
        if not self._token:
            return
        try:
            await self._send("DELETE", "Session/")
        except FetchError as e:
            log.warning("Logout failed: {}", e)
        finally:
            self._token = None

    # ---- reads ----
    async def list_zones(self) -> List[str]:
        data = await self._get_data("Zone/")
        if not isinstance(data, list):
            raise FetchError("zone list: 'data' is not a list")
        return [str(z) for z in data]

    async def get_zone(self, name: str) -> Zone:
        data = await self._get_data(f"Zone/{name}/")
        try:
            return Zone(name=str(data["zone"]), serial=int(data["serial"]))
        except (TypeError, KeyError, ValueError) as e:
            raise FetchError(f"zone {name}: malformed metadata ({e})") from e

    async def list_records(self, zone: str) -> List[str]:
        data = await self._get_data(f"AllRecord/{zone}/")
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchError(f"records of {zone}: 'data' is not a list")
        return [str(p) for p in data]

    async def get_record(self, path: str) -> ZoneRecord:
        data = await self._get_data(path)
        try:
            rdata = data.get("rdata") or {}
            return ZoneRecord(
                zone=str(data.get("zone") or ""),
                fqdn=str(data.get("fqdn") or ""),
                rtype=str(data.get("record_type") or ""),
                ttl=int(data["ttl"]),
                address=str(rdata.get("address") or ""),
                cname=str(rdata.get("cname") or ""),
                record_id=str(data.get("record_id") or ""),
            )
        except (AttributeError, TypeError, KeyError, ValueError) as e:
            raise FetchError(f"record {path}: malformed detail ({e})") from e
