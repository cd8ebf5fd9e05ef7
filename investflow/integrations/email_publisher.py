import json
import logging
import asyncio
import uuid
from typing import Any

from azure.servicebus.aio import ServiceBusClient
from azure.servicebus import ServiceBusMessage
from azure.servicebus.exceptions import (
    ServiceBusError,
    ServiceBusAuthenticationError,
    ServiceBusConnectionError,
)

from investflow.core.config import settings

logger = logging.getLogger(__name__)

SERVICE_BUS_TIMEOUT = 30

INVESTMENT_CONFIRMATION_TEMPLATE = "investment_confirmation"
INVESTMENT_CANCELLED_TEMPLATE = "investment_cancelled"


class EmailPublisher:
    """Queues transactional emails for the mailer worker.

    Messages are ``{recipient, template, payload}`` JSON documents; rendering
    and delivery happen on the consumer side.
    """

    @staticmethod
    def build_message(recipient: str, template: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {"recipient": recipient, "template": template, "payload": payload}

    @staticmethod
    async def publish(recipient: str, template: str, payload: dict[str, Any]) -> bool:
        if not settings.SERVICEBUS_CONNECTION_STRING:
            logger.warning("Service Bus connection string not configured; email %s not sent", template)
            return False

        if not settings.SERVICEBUS_EMAIL_QUEUE_NAME:
            logger.warning("Email queue name not configured; email %s not sent", template)
            return False

        body = EmailPublisher.build_message(recipient, template, payload)
        message_id = str(uuid.uuid4())

        try:
            async def _send_message():
                async with ServiceBusClient.from_connection_string(
                    conn_str=settings.SERVICEBUS_CONNECTION_STRING,
                    logging_enable=False,
                ) as client:
                    async with client.get_queue_sender(
                        queue_name=settings.SERVICEBUS_EMAIL_QUEUE_NAME
                    ) as sender:
                        message = ServiceBusMessage(
                            json.dumps(body, default=str),
                            content_type="application/json",
                            subject=template,
                            message_id=message_id,
                            application_properties={"template": template},
                        )
                        await sender.send_messages(message)

            await asyncio.wait_for(_send_message(), timeout=SERVICE_BUS_TIMEOUT)
            logger.info("Email queued (template=%s, message_id=%s)", template, message_id)
            return True

        except asyncio.TimeoutError:
            logger.error("Service Bus publish timed out (template=%s)", template)
            return False

        except ServiceBusAuthenticationError:
            logger.error("Service Bus authentication failed")
            return False

        except ServiceBusConnectionError:
            logger.error("Service Bus connection failed")
            return False

        except ServiceBusError:
            logger.error("Service Bus error (template=%s)", template)
            return False

        except TypeError:
            logger.error("Invalid email payload for JSON serialization (template=%s)", template)
            return False
