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

"""Logging and failure escalation shared by every checkout hook.

`log_line` always writes. `trace` writes only when the extension's debug mode
is switched on, and is used for the per-field dumps that help when a store
misbehaves. `report_failure` is called from recovery paths: it logs the
failure, renders an incident from the latest diagnostic breadcrumbs, and hands
it to the notification sink. Notification problems are logged once and never
re-raised.
"""

import datetime
import logging
from typing import Callable, Optional

from models import DeliveryOutcome
from models import DiagnosticContext
from models import Incident
from services.notification import NotificationSink
from services.property_lookup import UNKNOWN_STOREFRONT

logger = logging.getLogger(__name__)

EXTENSION_NAME = "Exclude Handling Extension"

_CONTEXT_LABELS = (
    ("user_id", "User ID"),
    ("order_id", "Order ID"),
    ("document_id", "Doc ID"),
    ("product_id", "Product ID"),
    ("product_name", "Product Name"),
    ("product_sku", "Product SKU"),
    ("exclude_handling_flag", "Exclude Handling Flag"),
)


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class DiagnosticsReporter:
  """Structured logging plus escalation-on-failure."""

  def __init__(
      self,
      sink: NotificationSink,
      debug_mode: bool = False,
      storefront_name: str = UNKNOWN_STOREFRONT,
      clock: Callable[[], datetime.datetime] = _utcnow,
  ):
    self.sink = sink
    self.debug_mode = debug_mode
    self.storefront_name = storefront_name
    self.clock = clock

  def log_line(self, message: str, *args) -> None:
    logger.info(message, *args)

  def trace(self, message: str, *args) -> None:
    if self.debug_mode:
      logger.info("[debug] " + message, *args)

  def warning(self, message: str, *args) -> None:
    """Logs a recoverable anomaly that does not warrant an incident."""
    logger.warning(message, *args)

  def build_incident(
      self,
      operation: str,
      context: DiagnosticContext,
      error: Optional[Exception] = None,
  ) -> Incident:
    """Renders an incident record from the current breadcrumbs."""
    now = self.clock()
    headline = (
        f'Storefront: "{self.storefront_name}" had an ERROR occur in the'
        f" {operation} method"
    )
    lines = [
        headline,
        f"Date: {now:%m%d%Y}  Time: {now:%H:%M:%S}",
        f"Extension: {EXTENSION_NAME}",
    ]
    for attr, label in _CONTEXT_LABELS:
      value = getattr(context, attr)
      if value is not None:
        lines.append(f"ERROR occurred with {label}: {value}")
    if error is not None:
      lines.append(f"Cause: {type(error).__name__}: {error}")

    return Incident(
        operation=operation,
        occurred_at=now,
        subject=headline,
        body="<br>\n".join(lines),
    )

  async def report_failure(
      self,
      operation: str,
      context: DiagnosticContext,
      error: Optional[Exception] = None,
  ) -> Optional[DeliveryOutcome]:
    """Logs a failure and attempts one incident notification.

    Returns the delivery outcome, or None when the sink itself failed.
    """
    logger.error("Error in %s method: %s", operation, error)
    incident = self.build_incident(operation, context, error)

    try:
      outcome = await self.sink.send_incident(incident.subject, incident.body)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Incident notification for %s failed: %s", operation, e)
      return None

    logger.info(
        "Incident notification for %s sent: %s (%s)",
        operation,
        outcome.delivered,
        outcome.detail,
    )
    return outcome
