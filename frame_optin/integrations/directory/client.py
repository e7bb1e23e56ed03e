"""Farcaster directory lookup (fid -> verified wallet address) using httpx."""

import logging
from typing import Any

import httpx

from frame_optin.core.errors import DirectoryLookupFailed, IdentityNotFound

logger = logging.getLogger(__name__)


def _address_list(value: Any, field: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DirectoryLookupFailed(f"Directory returned a non-list {field}")
    return [a for a in value if isinstance(a, str) and a]


def _verified_addresses(user: dict[str, Any]) -> list[str]:
    """Verified Ethereum addresses of a directory user, in directory order.

    Raises:
        DirectoryLookupFailed: An address field has the wrong shape.
    """
    verified = user.get("verified_addresses")
    if verified is not None and not isinstance(verified, dict):
        raise DirectoryLookupFailed("Directory returned a non-object verified_addresses")
    addresses = _address_list((verified or {}).get("eth_addresses"), "eth_addresses")
    if not addresses:
        addresses = _address_list(user.get("verifications"), "verifications")
    return addresses


class IdentityResolver:
    """Resolves a Farcaster fid to the first verified wallet address.

    Directory data is authoritative and slow-changing, so an empty
    verification list is final for the click; nothing is retried.
    """

    def __init__(self, http: httpx.AsyncClient, base_url: str, api_key: str = "") -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.headers = {"accept": "application/json"}
        if api_key:
            self.headers["api_key"] = api_key

    async def resolve_address(self, fid: int) -> str:
        """Return the first verified address for ``fid``.

        Raises:
            IdentityNotFound: The directory has no verified address for the fid.
            DirectoryLookupFailed: The directory call failed or returned garbage.
        """
        try:
            response = await self.http.get(
                f"{self.base_url}/user/bulk",
                params={"fids": str(fid)},
                headers=self.headers,
            )
            if response.status_code == httpx.codes.NOT_FOUND:
                raise IdentityNotFound(fid)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Directory lookup for fid %s failed: %s", fid, exc)
            raise DirectoryLookupFailed(f"Directory lookup failed: {exc}") from exc
        except ValueError as exc:
            raise DirectoryLookupFailed("Directory returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise DirectoryLookupFailed("Directory returned a non-object body")
        users = data.get("users")
        if not users:
            raise IdentityNotFound(fid)
        if not isinstance(users, list) or not isinstance(users[0], dict):
            logger.warning("Directory returned malformed users for fid %s", fid)
            raise DirectoryLookupFailed("Directory returned malformed users")

        addresses = _verified_addresses(users[0])
        if not addresses:
            raise IdentityNotFound(fid)

        logger.debug("Resolved fid %s to %d verified address(es)", fid, len(addresses))
        return addresses[0]
