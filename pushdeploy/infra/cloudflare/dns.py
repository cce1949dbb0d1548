"""Cloudflare DNS management.

Records created here always point at the ingress controller and are proxied
through Cloudflare with automatic TTL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
AUTO_TTL = 1


class CloudflareError(Exception):
    """Raised when the Cloudflare API reports ``success: false``."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


@dataclass(frozen=True)
class DnsRecord:
    id: str
    type: str
    name: str
    content: str
    proxied: bool = True
    ttl: int = AUTO_TTL

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DnsRecord:
        return cls(
            id=data["id"],
            type=data["type"],
            name=data["name"],
            content=data.get("content", ""),
            proxied=bool(data.get("proxied", False)),
            ttl=int(data.get("ttl", AUTO_TTL)),
        )


@dataclass(frozen=True)
class Zone:
    id: str
    name: str


@dataclass
class TokenVerification:
    valid: bool
    zones: list[Zone] = field(default_factory=list)
    error: str | None = None


def _unwrap(response: httpx.Response) -> Any:
    """Return ``result`` from a Cloudflare envelope or raise CloudflareError."""
    try:
        data = response.json()
    except ValueError as e:
        raise CloudflareError(
            f"Cloudflare API returned {response.status_code} with a non-JSON body"
        ) from e

    if not data.get("success"):
        errors = data.get("errors") or []
        detail = ", ".join(str(err.get("message", err)) for err in errors)
        raise CloudflareError(f"Cloudflare API error: {detail or 'unknown'}", errors)
    return data.get("result")


class CloudflareClient:
    """Zone-scoped DNS record operations."""

    def __init__(
        self,
        token: str,
        zone_id: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._zone_id = zone_id
        self._client = httpx.AsyncClient(
            base_url=api_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> CloudflareClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        return _unwrap(response)

    @property
    def _records_path(self) -> str:
        return f"/zones/{self._zone_id}/dns_records"

    async def list_records(
        self, name: str | None = None, record_type: str | None = None
    ) -> list[DnsRecord]:
        params: dict[str, str] = {}
        if name:
            params["name"] = name
        if record_type:
            params["type"] = record_type
        result = await self._request("GET", self._records_path, params=params)
        return [DnsRecord.from_api(item) for item in result or []]

    async def create_record(
        self, record_type: str, name: str, content: str, proxied: bool = True
    ) -> DnsRecord:
        result = await self._request(
            "POST",
            self._records_path,
            json=self._record_body(record_type, name, content, proxied),
        )
        return DnsRecord.from_api(result)

    async def update_record(
        self,
        record_id: str,
        record_type: str,
        name: str,
        content: str,
        proxied: bool = True,
    ) -> DnsRecord:
        result = await self._request(
            "PUT",
            f"{self._records_path}/{record_id}",
            json=self._record_body(record_type, name, content, proxied),
        )
        return DnsRecord.from_api(result)

    async def delete_record(self, record_id: str) -> None:
        await self._request("DELETE", f"{self._records_path}/{record_id}")

    async def upsert_record(
        self, record_type: str, name: str, content: str, proxied: bool = True
    ) -> DnsRecord:
        """Update the first record with this exact name and type, or create one."""
        existing = await self.list_records(name)
        match = next(
            (r for r in existing if r.type == record_type and r.name == name), None
        )
        if match:
            return await self.update_record(match.id, record_type, name, content, proxied)
        return await self.create_record(record_type, name, content, proxied)

    @staticmethod
    def _record_body(
        record_type: str, name: str, content: str, proxied: bool
    ) -> dict[str, Any]:
        return {
            "type": record_type,
            "name": name,
            "content": content,
            "proxied": proxied,
            "ttl": AUTO_TTL,
        }


class DnsPublisher:
    """Publishes and removes project hostnames.

    Args:
        api_url: Cloudflare API base URL
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    def client(self, token: str, zone_id: str) -> CloudflareClient:
        return CloudflareClient(
            token,
            zone_id,
            api_url=self._api_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def publish(
        self, token: str, zone_id: str, hostname: str, address: str
    ) -> DnsRecord:
        """Point ``hostname`` at ``address`` with a proxied A record."""
        async with self.client(token, zone_id) as cf:
            record = await cf.upsert_record("A", hostname, address)
        logger.info(f"DNS record {hostname} -> {address} published")
        return record

    async def remove(self, token: str, zone_id: str, hostname: str) -> int:
        """Delete every record for ``hostname``; returns how many were removed."""
        async with self.client(token, zone_id) as cf:
            records = await cf.list_records(hostname)
            for record in records:
                await cf.delete_record(record.id)
        logger.info(f"Removed {len(records)} DNS record(s) for {hostname}")
        return len(records)

    async def verify_token(self, token: str) -> TokenVerification:
        """Check a token and list the zones it can manage."""
        async with httpx.AsyncClient(
            base_url=self._api_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self._timeout,
            transport=self._transport,
        ) as http:
            try:
                _unwrap(await http.get("/user/tokens/verify"))
            except CloudflareError:
                return TokenVerification(valid=False, error="Invalid token")
            except httpx.HTTPError as e:
                return TokenVerification(valid=False, error=str(e))

            try:
                zones = _unwrap(await http.get("/zones"))
            except (CloudflareError, httpx.HTTPError) as e:
                logger.warning(f"Token is valid but zones could not be listed: {e}")
                return TokenVerification(valid=True)

        return TokenVerification(
            valid=True, zones=[Zone(id=z["id"], name=z["name"]) for z in zones or []]
        )
