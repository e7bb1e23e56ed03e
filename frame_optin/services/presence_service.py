"""Messaging network reachability checks."""

from frame_optin.core.errors import PresenceCheckFailed
from frame_optin.integrations.xmtp.client import XmtpClient, XmtpGatewayError


class PresenceService:
    """Answers whether an address can receive messages on the network."""

    def __init__(self, client: XmtpClient) -> None:
        self.client = client

    async def is_on_network(self, address: str) -> bool:
        """Return reachability for ``address``.

        A gateway failure is not a negative answer: it raises
        PresenceCheckFailed instead of returning False.
        """
        try:
            return await self.client.is_on_network(address)
        except XmtpGatewayError as exc:
            raise PresenceCheckFailed(address) from exc
