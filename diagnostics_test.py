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

"""Tests for failure reporting and the incident notification sinks."""

import asyncio
import datetime
import smtplib
from unittest import mock

from absl.testing import absltest
from exceptions import NotificationDeliveryError
import httpx
from models import DeliveryOutcome
from models import DiagnosticContext
from services.diagnostics import DiagnosticsReporter
from services.notification import LogOnlyNotificationSink
from services.notification import NotificationSink
from services.notification import SmtpNotificationSink
from services.notification import WebhookNotificationSink

FIXED_NOW = datetime.datetime(2026, 3, 4, 13, 5, 9)


class StubSink(NotificationSink):

  def __init__(self, outcome=None, error=None) -> None:
    self.outcome = outcome or DeliveryOutcome(delivered=True, detail="ok")
    self.error = error
    self.sent = []

  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    self.sent.append((subject, body))
    if self.error is not None:
      raise self.error
    return self.outcome


class DiagnosticsReporterTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.sink = StubSink()
    self.reporter = DiagnosticsReporter(
        self.sink, storefront_name="Demo", clock=lambda: FIXED_NOW
    )
    self.context = DiagnosticContext(
        user_id="user_1",
        order_id="order_1",
        document_id="doc_1",
        product_id="prod_1",
    )

  def test_incident_contains_breadcrumbs(self) -> None:
    incident = self.reporter.build_incident(
        "ValidateItem", self.context, ValueError("bad flag")
    )
    self.assertEqual(
        incident.subject,
        'Storefront: "Demo" had an ERROR occur in the ValidateItem method',
    )
    self.assertIn("Date: 03042026  Time: 13:05:09", incident.body)
    self.assertIn("ERROR occurred with Order ID: order_1", incident.body)
    self.assertIn("ERROR occurred with Product ID: prod_1", incident.body)
    self.assertIn("Cause: ValueError: bad flag", incident.body)
    # Breadcrumbs that were never observed are left out.
    self.assertNotIn("Product SKU", incident.body)
    self.assertEqual(incident.occurred_at, FIXED_NOW)

  def test_report_failure_sends_one_incident(self) -> None:
    with self.assertLogs(level="ERROR") as logs:
      outcome = asyncio.run(
          self.reporter.report_failure("ComputeHandlingCharge", self.context)
      )
    self.assertTrue(outcome.delivered)
    self.assertLen(self.sink.sent, 1)
    self.assertIn("Error in ComputeHandlingCharge method", logs.output[0])

  def test_report_failure_swallows_sink_errors(self) -> None:
    self.sink.error = NotificationDeliveryError("relay down")
    with self.assertLogs(level="ERROR") as logs:
      outcome = asyncio.run(
          self.reporter.report_failure("CheckoutBegin", self.context)
      )
    self.assertIsNone(outcome)
    self.assertTrue(any("relay down" in line for line in logs.output))

  def test_report_failure_ignores_debug_mode(self) -> None:
    self.reporter.debug_mode = False
    asyncio.run(self.reporter.report_failure("CheckoutBegin", self.context))
    self.assertLen(self.sink.sent, 1)

  def test_trace_only_logs_in_debug_mode(self) -> None:
    with self.assertNoLogs("services.diagnostics", level="INFO"):
      self.reporter.trace("Product SKU: %s", "SKU-1")

    self.reporter.debug_mode = True
    with self.assertLogs("services.diagnostics", level="INFO") as logs:
      self.reporter.trace("Product SKU: %s", "SKU-1")
    self.assertIn("Product SKU: SKU-1", logs.output[0])

  def test_log_line_always_logs(self) -> None:
    with self.assertLogs("services.diagnostics", level="INFO") as logs:
      self.reporter.log_line("Checkout begin for order %s", "order_1")
    self.assertIn("order_1", logs.output[0])

  def test_warning_logs_regardless_of_debug_mode(self) -> None:
    with self.assertLogs("services.diagnostics", level="WARNING") as logs:
      self.reporter.warning("Ignoring line item %s", "doc_1")
    self.assertIn("WARNING", logs.output[0])
    self.assertIn("doc_1", logs.output[0])
    self.assertEmpty(self.sink.sent)


class NotificationSinkTest(absltest.TestCase):

  def test_log_only_sink_reports_undelivered(self) -> None:
    outcome = asyncio.run(
        LogOnlyNotificationSink().send_incident("subject", "body")
    )
    self.assertFalse(outcome.delivered)

  @mock.patch("smtplib.SMTP")
  def test_smtp_sink_sends_html_email(self, mock_smtp) -> None:
    sink = SmtpNotificationSink(
        host="smtp.example.com",
        sender="alerts@example.com",
        recipients=["dev@example.com", "ops@example.com"],
    )
    outcome = asyncio.run(sink.send_incident("Subject", "line 1<br>line 2"))

    self.assertTrue(outcome.delivered)
    mock_smtp.assert_called_once_with("smtp.example.com", 25, timeout=10.0)
    client = mock_smtp.return_value.__enter__.return_value
    message = client.send_message.call_args[0][0]
    self.assertEqual(message["Subject"], "Subject")
    self.assertEqual(message["To"], "dev@example.com, ops@example.com")
    self.assertEqual(message.get_content_subtype(), "html")

  @mock.patch("smtplib.SMTP")
  def test_smtp_sink_wraps_transport_errors(self, mock_smtp) -> None:
    mock_smtp.side_effect = smtplib.SMTPConnectError(421, "busy")
    sink = SmtpNotificationSink(
        host="smtp.example.com", sender="a@example.com", recipients=["b@c.d"]
    )
    with self.assertRaises(NotificationDeliveryError):
      asyncio.run(sink.send_incident("Subject", "Body"))

  def test_smtp_sink_requires_recipients(self) -> None:
    sink = SmtpNotificationSink(
        host="smtp.example.com", sender="a@example.com", recipients=[]
    )
    with self.assertRaises(NotificationDeliveryError):
      asyncio.run(sink.send_incident("Subject", "Body"))

  def test_webhook_sink_posts_json(self) -> None:
    url = "https://alerts.example.com/incidents"
    response = httpx.Response(202, request=httpx.Request("POST", url))
    with mock.patch.object(
        httpx.AsyncClient, "post", return_value=response
    ) as mock_post:
      outcome = asyncio.run(
          WebhookNotificationSink(url).send_incident("Subject", "Body")
      )

    self.assertTrue(outcome.delivered)
    mock_post.assert_called_once_with(
        url, json={"subject": "Subject", "body": "Body"}, timeout=5.0
    )

  def test_webhook_sink_wraps_http_errors(self) -> None:
    url = "https://alerts.example.com/incidents"
    with mock.patch.object(
        httpx.AsyncClient,
        "post",
        side_effect=httpx.ConnectError("connection refused"),
    ):
      with self.assertRaises(NotificationDeliveryError):
        asyncio.run(
            WebhookNotificationSink(url).send_incident("Subject", "Body")
        )


if __name__ == "__main__":
  absltest.main()
