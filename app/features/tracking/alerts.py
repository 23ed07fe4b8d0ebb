"""
Alert dispatch.

Sends SOS and automatic alerts with the hiker's position to emergency
contacts over SMS and email gateways.
"""

import logging
from typing import Optional, Protocol, Sequence

import httpx

from app.config import settings

from .errors import DispatchError
from .types import Coordinate, DispatchReport, EmergencyContact

logger = logging.getLogger(__name__)

SOS_SUBJECT = "Emergency SOS - Immediate Assistance Needed"
ALERT_SUBJECT = "Hiking safety alert"


class AlertDispatcher(Protocol):
    """Delivery channel for alerts. Both calls raise DispatchError on failure."""

    async def send_sms(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        message: str,
    ) -> None: ...

    async def send_email(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        subject: str,
        message: str,
    ) -> None: ...


def generate_share_link(coordinate: Coordinate, base_url: Optional[str] = None) -> str:
    """Map link pointing at the coordinate."""
    base = (base_url or settings.map_link_base_url).rstrip("/")
    return f"{base}?q={coordinate.latitude},{coordinate.longitude}"


def format_location_text(coordinate: Coordinate, message: str) -> str:
    """Append position and map link to a message."""
    return (
        f"{message}\n\n"
        f"Location: {coordinate.latitude}, {coordinate.longitude}\n"
        f"Map: {generate_share_link(coordinate)}"
    )


def format_sos_message(coordinate: Coordinate, message: str) -> str:
    """Full SOS text sent to every contact."""
    return (
        "🆘 Emergency SOS!\n\n"
        f"{message}\n\n"
        "My Location:\n"
        f"Latitude: {coordinate.latitude}\n"
        f"Longitude: {coordinate.longitude}\n"
        f"Map: {generate_share_link(coordinate)}\n\n"
        "Please assist immediately!"
    )


def format_anomaly_alert(anomaly_message: str) -> str:
    """Text of an automatic alert raised by the anomaly check."""
    return f"Automatically detected a possible emergency: {anomaly_message}"


async def dispatch_to_contacts(
    dispatcher: AlertDispatcher,
    contacts: Sequence[EmergencyContact],
    coordinate: Coordinate,
    message: str,
    subject: str,
) -> DispatchReport:
    """
    Send a message to each contact, best effort.

    SMS goes to every contact with a phone number, email additionally to
    every contact with an email address. A failed delivery is logged and
    recorded; remaining contacts are still tried.

    Args:
        dispatcher: Delivery channel
        contacts: Recipients
        coordinate: Position included in the message
        message: Message body
        subject: Email subject

    Returns:
        DispatchReport with per-channel counts and failures
    """
    report = DispatchReport()

    for contact in contacts:
        if contact.has_phone:
            try:
                await dispatcher.send_sms([contact], coordinate, message)
                report.sms_sent += 1
            except Exception as e:
                logger.error(f"SMS to {contact.name} failed: {e}")
                report.failures.append(f"sms:{contact.name}")

        if contact.has_email:
            try:
                await dispatcher.send_email([contact], coordinate, subject, message)
                report.emails_sent += 1
            except Exception as e:
                logger.error(f"Email to {contact.name} failed: {e}")
                report.failures.append(f"email:{contact.name}")

    logger.info(
        f"Alert dispatched: {report.sms_sent} SMS, {report.emails_sent} emails, "
        f"{len(report.failures)} failed"
    )
    return report


class HttpAlertDispatcher:
    """
    Async sender posting JSON to SMS/email gateway endpoints.

    A channel without a configured gateway URL raises DispatchError so the
    fan-out records it as failed.
    """

    def __init__(
        self,
        sms_url: Optional[str] = None,
        email_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.sms_url = sms_url
        self.email_url = email_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "HttpAlertDispatcher":
        return cls(
            sms_url=settings.sms_gateway_url,
            email_url=settings.email_gateway_url,
            api_key=settings.alert_gateway_api_key,
        )

    @property
    def enabled(self) -> bool:
        """Check if any channel is configured."""
        return bool(self.sms_url or self.email_url)

    async def send_sms(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        message: str,
    ) -> None:
        if not self.sms_url:
            raise DispatchError("SMS gateway is not configured")
        payload = {
            "to": [c.phone_number for c in contacts],
            "text": format_location_text(coordinate, message),
        }
        await self._post(self.sms_url, payload)

    async def send_email(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        subject: str,
        message: str,
    ) -> None:
        if not self.email_url:
            raise DispatchError("Email gateway is not configured")
        payload = {
            "to": [c.email for c in contacts if c.email],
            "subject": subject,
            "text": format_location_text(coordinate, message),
        }
        await self._post(self.email_url, payload)

    async def _post(self, url: str, payload: dict) -> None:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise DispatchError(f"Gateway timeout: {url}") from e
        except httpx.HTTPError as e:
            raise DispatchError(f"Gateway unreachable: {e}") from e

        if response.status_code >= 400:
            raise DispatchError(
                f"Gateway error: {response.status_code} - {response.text}"
            )
        logger.debug(f"Gateway accepted message for {payload['to']}")


class LoggingAlertDispatcher:
    """Writes alerts to the log instead of sending them. Used when no gateway is set."""

    async def send_sms(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        message: str,
    ) -> None:
        names = ", ".join(c.name for c in contacts)
        logger.warning(f"[sms] to {names}: {format_location_text(coordinate, message)}")

    async def send_email(
        self,
        contacts: Sequence[EmergencyContact],
        coordinate: Coordinate,
        subject: str,
        message: str,
    ) -> None:
        recipients = ", ".join(c.email or c.phone_number for c in contacts)
        logger.warning(
            f"[email] to {recipients} ({subject}): {format_location_text(coordinate, message)}"
        )


def get_alert_dispatcher() -> AlertDispatcher:
    """Gateway dispatcher when configured, log-only otherwise."""
    dispatcher = HttpAlertDispatcher.from_settings()
    if dispatcher.enabled:
        return dispatcher
    logger.info("Alert gateways not configured, alerts will only be logged")
    return LoggingAlertDispatcher()
