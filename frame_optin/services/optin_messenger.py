"""Opt-in confirmation message delivery."""

import logging
from collections.abc import Callable

from frame_optin.core.errors import MessageDeliveryFailed
from frame_optin.core.security import build_consent_url
from frame_optin.integrations.xmtp.client import XmtpClient, XmtpGatewayError

logger = logging.getLogger(__name__)

OPT_IN_MESSAGE_TEMPLATE = (
    "Thanks for subscribing! To start receiving updates here, "
    "confirm your subscription: {consent_url}"
)


def build_opt_in_message(consent_url: str) -> str:
    """Render the fixed opt-in message around a consent link."""
    return OPT_IN_MESSAGE_TEMPLATE.format(consent_url=consent_url)


class OptInMessenger:
    """Sends the confirmation message that starts the second opt-in step.

    Delivery is at-least-once: a retried click sends the message again and
    nothing here deduplicates it.
    """

    def __init__(
        self,
        client: XmtpClient,
        consent_url_factory: Callable[[str], str] = build_consent_url,
    ) -> None:
        self.client = client
        self.consent_url_factory = consent_url_factory

    async def send_opt_in(self, address: str) -> str:
        """Open a conversation with ``address`` and send the opt-in message.

        Returns the message id reported by the network.

        Raises:
            MessageDeliveryFailed: If the conversation cannot be opened or the send fails.
        """
        text = build_opt_in_message(self.consent_url_factory(address))
        try:
            conversation = await self.client.new_conversation(address)
            message_id = await self.client.send(conversation, text)
        except XmtpGatewayError as exc:
            raise MessageDeliveryFailed(address) from exc

        logger.info("Opt-in message sent: to=%s id=%s", address, message_id)
        return message_id
