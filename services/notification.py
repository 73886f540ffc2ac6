#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Incident notification sinks.

A sink receives a rendered incident and tries to deliver it once. Sinks
report the outcome as a `DeliveryOutcome`; transports that fail raise
`NotificationDeliveryError`, which the diagnostics reporter logs and
swallows.

- `SmtpNotificationSink` emails the incident to the maintainers.
- `WebhookNotificationSink` posts it as JSON to an alerting endpoint.
- `LogOnlyNotificationSink` is used when no transport is configured.
"""

import abc
import asyncio
from email.message import EmailMessage
import logging
import smtplib
from typing import Sequence

from exceptions import NotificationDeliveryError
import httpx
from models import DeliveryOutcome

logger = logging.getLogger(__name__)


class NotificationSink(abc.ABC):
  """Fire-and-forget incident channel."""

  @abc.abstractmethod
  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    """Delivers one incident."""


class LogOnlyNotificationSink(NotificationSink):
  """Writes incidents to the log instead of sending them anywhere."""

  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    logger.warning("Incident (no transport configured): %s", subject)
    return DeliveryOutcome(delivered=False, detail="no transport configured")


class SmtpNotificationSink(NotificationSink):
  """Emails incidents through an SMTP relay.

  The body is HTML, with one `<br>` separated line per diagnostic field.
  """

  def __init__(
      self,
      host: str,
      sender: str,
      recipients: Sequence[str],
      port: int = 25,
      timeout: float = 10.0,
  ):
    self.host = host
    self.port = port
    self.sender = sender
    self.recipients = list(recipients)
    self.timeout = timeout

  def _build_message(self, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = self.sender
    message["To"] = ", ".join(self.recipients)
    message.set_content(body, subtype="html")
    return message

  def _send(self, message: EmailMessage) -> None:
    with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
      client.send_message(message)

  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    if not self.recipients:
      raise NotificationDeliveryError("No incident recipients configured")

    message = self._build_message(subject, body)
    try:
      await asyncio.to_thread(self._send, message)
    except (smtplib.SMTPException, OSError) as e:
      raise NotificationDeliveryError(
          f"SMTP delivery via {self.host}:{self.port} failed: {e}"
      ) from e
    return DeliveryOutcome(
        delivered=True, detail=f"emailed {len(self.recipients)} recipient(s)"
    )


class WebhookNotificationSink(NotificationSink):
  """Posts incidents as JSON to an alerting webhook."""

  def __init__(self, url: str, timeout: float = 5.0):
    self.url = url
    self.timeout = timeout

  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    payload = {"subject": subject, "body": body}
    try:
      async with httpx.AsyncClient() as client:
        response = await client.post(
            self.url, json=payload, timeout=self.timeout
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
      raise NotificationDeliveryError(
          f"Webhook delivery to {self.url} failed: {e}"
      ) from e
    return DeliveryOutcome(
        delivered=True, detail=f"webhook returned {response.status_code}"
    )
