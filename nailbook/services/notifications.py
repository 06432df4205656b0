"""WhatsApp appointment notifications delivered through the UltraMsg gateway."""

import logging
from dataclasses import dataclass

import httpx

from nailbook.core import config
from nailbook.core.phone import normalize_phone

logger = logging.getLogger(__name__)

HEBREW_MONTHS = (
    'בינואר', 'בפברואר', 'במרץ', 'באפריל', 'במאי', 'ביוני',
    'ביולי', 'באוגוסט', 'בספטמבר', 'באוקטובר', 'בנובמבר', 'בדצמבר',
)

# Substrings of provider errors meaning the number cannot receive WhatsApp messages.
NOT_OPTED_IN_MARKERS = (
    'not opted in',
    'opt-in',
    'opted-in',
    'not a whatsapp',
    'not registered',
    'not exists on whatsapp',
    'invalid whatsapp',
)


@dataclass
class SendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None
    is_not_opted_in: bool = False

    def to_payload(self) -> dict:
        if self.success:
            return {'success': True, 'messageId': self.message_id}
        payload = {'success': False, 'error': self.error}
        if self.is_not_opted_in:
            payload['isNotOptedIn'] = True
        return payload


def format_display_date(value: str) -> str:
    """``2026-10-20`` -> ``20 באוקטובר 2026``; anything unparseable is returned as-is."""
    try:
        year, month, day = (int(part) for part in value.split('-'))
        return f'{day} {HEBREW_MONTHS[month - 1]} {year}'
    except (AttributeError, ValueError, IndexError):
        return value


def build_message(name: str, date: str, time: str, is_cancellation: bool = False) -> str:
    if is_cancellation:
        return f"תור ללק ג'ל ל-{name} בתאריך {date} בשעה {time} בוטל."
    return f"תור ללק ג'ל ל-{name} נקבע לתאריך {date} בשעה {time}."


def _is_not_opted_in(error: str) -> bool:
    lowered = error.lower()
    return any(marker in lowered for marker in NOT_OPTED_IN_MARKERS)


def _provider_error(payload) -> str:
    if isinstance(payload, dict):
        error = payload.get('error') or payload.get('message')
        if isinstance(error, str) and error:
            return error
        if error:
            return str(error)
    return 'Failed to send WhatsApp message'


def _interpret_response(payload) -> SendResult:
    if isinstance(payload, dict) and (
        payload.get('status') == 'success'
        or payload.get('sent') in (True, 'true')
        or payload.get('message') == 'ok'
    ):
        message_id = payload.get('id') or payload.get('message') or 'sent'
        return SendResult(success=True, message_id=str(message_id))

    error = _provider_error(payload)
    return SendResult(success=False, error=error, is_not_opted_in=_is_not_opted_in(error))


class NotificationSender:
    """Sends booking and cancellation messages; never raises."""

    def __init__(
        self,
        instance_id: str | None = None,
        api_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.instance_id = instance_id if instance_id is not None else config.ULTRAMSG_INSTANCE_ID
        self.api_token = api_token if api_token is not None else config.ULTRAMSG_API_TOKEN
        self.base_url = (base_url or config.ULTRAMSG_BASE_URL).rstrip('/')
        self.timeout = timeout or config.NOTIFICATION_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def messages_url(self) -> str:
        return f'{self.base_url}/{self.instance_id}/messages/chat'

    def send(
        self,
        phone: str,
        name: str,
        date: str,
        time: str,
        is_cancellation: bool = False,
    ) -> SendResult:
        recipient = normalize_phone(phone)
        if not recipient:
            return SendResult(success=False, error='Recipient phone number is missing')

        if not self.instance_id or not self.api_token:
            logger.warning('WhatsApp notification to %s skipped: provider not configured', recipient)
            return SendResult(success=False, error='Messaging provider is not configured')

        body = build_message(name, date, time, is_cancellation)
        logger.info(
            'Sending %s WhatsApp to %s',
            'cancellation' if is_cancellation else 'booking',
            recipient,
        )

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.messages_url,
                    data={'token': self.api_token, 'to': recipient, 'body': body},
                )
            payload = response.json()
        except Exception as exc:
            logger.exception('Failed to send WhatsApp message to %s', recipient)
            return SendResult(success=False, error=str(exc) or 'Failed to send WhatsApp message')

        result = _interpret_response(payload)
        if result.success:
            logger.info('WhatsApp message to %s accepted (id=%s)', recipient, result.message_id)
        else:
            logger.warning('WhatsApp message to %s rejected: %s', recipient, result.error)
        return result

    def send_to_admin(
        self,
        name: str,
        date: str,
        time: str,
        is_cancellation: bool = False,
    ) -> SendResult | None:
        """Copy the salon owner; returns ``None`` when no admin phone is configured."""
        if not config.ADMIN_PHONE:
            return None
        return self.send(config.ADMIN_PHONE, name, date, time, is_cancellation)
