"""XMTP network gateway client using httpx."""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from frame_optin.schemas.subscriber import ConsentState

logger = logging.getLogger(__name__)


class XmtpGatewayError(Exception):
    """The gateway could not be reached or returned an unusable response."""


@dataclass(frozen=True)
class ConversationHandle:
    """An open 1:1 conversation, valid for the duration of one send."""

    topic: str
    peer_address: str


class XmtpContacts:
    """Consent list operations for the client's identity."""

    def __init__(self, client: "XmtpClient") -> None:
        self._client = client

    async def refresh_consent_list(self) -> None:
        """Pull the latest consent records from the network."""
        await self._client._request("POST", "/v1/consent/refresh")

    async def consent_state(self, address: str) -> ConsentState:
        """Read the consent state this identity holds for an address."""
        data = await self._client._request("GET", f"/v1/consent/{quote(address)}")
        return ConsentState.parse(data.get("state"))

    async def allow(self, addresses: list[str]) -> None:
        await self._client._request("POST", "/v1/consent/allow", json={"addresses": addresses})

    async def deny(self, addresses: list[str]) -> None:
        await self._client._request("POST", "/v1/consent/deny", json={"addresses": addresses})


class XmtpClient:
    """Async client for an XMTP HTTP gateway, acting as one identity.

    The underlying ``httpx.AsyncClient`` is owned by the caller and shared
    across identities; ``with_identity`` returns a sibling client bound to
    another address.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        address: str,
        *,
        api_key: str = "",
        env: str = "production",
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.address = address
        self.api_key = api_key
        self.env = env
        self.headers = {
            "Content-Type": "application/json",
            "X-XMTP-Env": env,
        }
        if address:
            self.headers["X-XMTP-Identity"] = address
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
        self.contacts = XmtpContacts(self)

    def with_identity(self, address: str) -> "XmtpClient":
        """Return a client acting as ``address`` over the same connection pool."""
        return XmtpClient(self.http, self.base_url, address, api_key=self.api_key, env=self.env)

    async def is_on_network(self, address: str) -> bool:
        """Whether ``address`` has published keys on the network."""
        data = await self._request("GET", f"/v1/network/{quote(address)}")
        on_network = data.get("on_network")
        if not isinstance(on_network, bool):
            raise XmtpGatewayError(f"Malformed presence response for {address}: {data!r}")
        return on_network

    async def new_conversation(self, peer_address: str) -> ConversationHandle:
        """Open (or reuse) the 1:1 conversation with ``peer_address``."""
        data = await self._request("POST", "/v1/conversations", json={"peer_address": peer_address})
        topic = data.get("topic")
        if not topic:
            raise XmtpGatewayError(f"Gateway returned no conversation topic for {peer_address}")
        return ConversationHandle(topic=str(topic), peer_address=peer_address)

    async def send(self, conversation: ConversationHandle, text: str) -> str:
        """Send a text message; returns the network message id."""
        data = await self._request(
            "POST",
            f"/v1/conversations/{quote(conversation.topic, safe='')}/messages",
            json={"content": text},
        )
        return str(data.get("id", ""))

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Issue a gateway call and decode its JSON object body."""
        url = f"{self.base_url}{path}"
        try:
            response = await self.http.request(method, url, headers=self.headers, **kwargs)
            response.raise_for_status()
            data = response.json() if response.content else {}
        except httpx.HTTPError as exc:
            logger.warning("XMTP gateway %s %s failed: %s", method, path, exc)
            raise XmtpGatewayError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise XmtpGatewayError(f"{method} {path} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise XmtpGatewayError(f"{method} {path} returned {type(data).__name__}, expected object")
        return data
