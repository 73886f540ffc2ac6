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

"""Integration tests for the extension server."""

import asyncio
import os
import shutil
import tempfile
from typing import AsyncGenerator

from absl.testing import absltest
import db
import dependencies
from fastapi.testclient import TestClient
from models import DeliveryOutcome
from server import app
from services import session_state
from services.notification import NotificationSink
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool


class RecordingSink(NotificationSink):

  def __init__(self) -> None:
    self.incidents = []

  async def send_incident(self, subject: str, body: str) -> DeliveryOutcome:
    self.incidents.append((subject, body))
    return DeliveryOutcome(delivered=True, detail="recorded")


class IntegrationTest(absltest.TestCase):
  """Integration tests for the checkout hook routes."""

  def setUp(self) -> None:
    """Sets up a temporary store DB and dependency overrides."""
    super().setUp()
    self.test_dir = tempfile.mkdtemp()
    self.db_path = os.path.join(self.test_dir, "test_store.db")

    self.engine = create_async_engine(
        f"sqlite+aiosqlite:///{self.db_path}", echo=False, poolclass=NullPool
    )
    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )
    asyncio.run(self._async_seed())

    async def override_get_store_db() -> AsyncGenerator[AsyncSession, None]:
      async with self.session_factory() as session:
        yield session

    self.sink = RecordingSink()
    app.dependency_overrides[dependencies.get_store_db] = override_get_store_db
    app.dependency_overrides[dependencies.get_notification_sink] = (
        lambda: self.sink
    )
    session_state.registry = session_state.SessionRegistry()

    self.client = TestClient(app)

  def tearDown(self) -> None:
    """Cleans up the test environment."""
    app.dependency_overrides.clear()
    asyncio.run(self.engine.dispose())
    shutil.rmtree(self.test_dir)
    super().tearDown()

  async def _async_seed(self) -> None:
    """Creates the schema and seeds a small storefront."""
    async with self.engine.begin() as conn:
      await conn.run_sync(db.StoreBase.metadata.create_all)

    async with self.session_factory() as session:
      session.add_all([
          db.Product(
              id="brochure", display_name="Brochure", sku="BRO-1",
              exclude_handling="Yes",
          ),
          db.Product(
              id="flyer", display_name="Flyer", sku="FLY-1",
              exclude_handling="Yes",
          ),
          db.Product(
              id="cards", display_name="Business Cards", sku="BC-1",
              exclude_handling="No",
          ),
          db.Product(id="poster", display_name="Poster", sku="POS-1"),
          db.Document(id="doc_brochure", product_id="brochure"),
          db.Document(id="doc_flyer", product_id="flyer"),
          db.Document(id="doc_cards", product_id="cards"),
          db.Document(id="doc_poster", product_id="poster"),
          db.Document(id="doc_orphan", product_id="discontinued"),
          db.Order(id="order_1", user_id="user_1", handling_charge="5.00"),
          db.Order(id="order_2", user_id="user_2", handling_charge="7.50"),
          db.SystemProperty(name="STOREFRONT_NAME", value="Test Storefront"),
          db.SystemProperty(name="IsoCurrencyCode", value="USD"),
      ])
      await session.commit()

  def _run_checkout(self, order_id: str, line_item_ids: list[str]) -> dict:
    response = self.client.post(
        f"/checkout/{order_id}/begin",
        json={"user_id": "user_1", "line_item_ids": line_item_ids},
    )
    self.assertEqual(response.status_code, 200, response.text)
    self.assertEqual(response.json(), {"status": "success"})

    response = self.client.post(f"/checkout/{order_id}/handling-charge")
    self.assertEqual(response.status_code, 200, response.text)
    return response.json()

  def test_all_excludable_items_waive_handling(self) -> None:
    with self.client:
      charge = self._run_checkout("order_1", ["doc_brochure", "doc_flyer"])
    self.assertEqual(charge["iso_currency_code"], "USD")
    self.assertEqual(float(charge["handling_charge"]), 0.0)
    self.assertEmpty(self.sink.incidents)

  def test_mixed_cart_keeps_handling(self) -> None:
    with self.client:
      charge = self._run_checkout("order_1", ["doc_brochure", "doc_cards"])
    self.assertEqual(float(charge["handling_charge"]), 5.0)

  def test_unflagged_product_keeps_handling(self) -> None:
    with self.client:
      charge = self._run_checkout("order_1", ["doc_brochure", "doc_poster"])
    self.assertEqual(float(charge["handling_charge"]), 5.0)

  def test_empty_cart_keeps_handling(self) -> None:
    with self.client:
      charge = self._run_checkout("order_2", [])
    self.assertEqual(float(charge["handling_charge"]), 7.5)

  def test_missing_product_is_reported_and_charged(self) -> None:
    with self.client:
      charge = self._run_checkout("order_1", ["doc_orphan"])
    self.assertEqual(float(charge["handling_charge"]), 5.0)
    self.assertLen(self.sink.incidents, 1)
    subject, body = self.sink.incidents[0]
    self.assertIn('"Test Storefront"', subject)
    self.assertIn("Doc ID: doc_orphan", body)
    self.assertIn("Product ID: discontinued", body)

  def test_items_validated_through_separate_hook(self) -> None:
    with self.client:
      response = self.client.post(
          "/checkout/order_2/begin", json={"user_id": "user_2"}
      )
      self.assertEqual(response.status_code, 200, response.text)
      for doc_id in ("doc_brochure", "doc_flyer"):
        response = self.client.post(
            f"/checkout/order_2/items/{doc_id}/validate"
        )
        self.assertEqual(response.json(), {"status": "success"})
      charge = self.client.post("/checkout/order_2/handling-charge").json()
    self.assertEqual(float(charge["handling_charge"]), 0.0)

  def test_sequential_orders_are_independent(self) -> None:
    with self.client:
      first = self._run_checkout("order_1", ["doc_cards"])
      second = self._run_checkout("order_2", ["doc_flyer"])
    self.assertEqual(float(first["handling_charge"]), 5.0)
    self.assertEqual(float(second["handling_charge"]), 0.0)

  def test_unknown_order_never_fails(self) -> None:
    with self.client:
      charge = self._run_checkout("order_missing", ["doc_brochure"])
    self.assertEqual(charge["iso_currency_code"], "USD")
    self.assertNotEmpty(self.sink.incidents)

  def test_debug_mode_round_trip(self) -> None:
    with self.client:
      response = self.client.get("/extension/config")
      self.assertEqual(response.json(), {"debug_mode": False})

      response = self.client.put("/extension/config", json={"debug_mode": True})
      self.assertEqual(response.status_code, 200, response.text)

      response = self.client.get("/extension/config")
      self.assertEqual(response.json(), {"debug_mode": True})

      with self.assertLogs("services.diagnostics", level="INFO") as logs:
        self._run_checkout("order_1", ["doc_brochure"])
    self.assertTrue(any("[debug]" in line for line in logs.output))

  def test_extension_profile(self) -> None:
    with self.client:
      response = self.client.get("/.well-known/handling-extension")
    self.assertEqual(response.status_code, 200)
    profile = response.json()
    self.assertEqual(profile["unique_name"], "Exclude.Handling.Extension")
    self.assertEqual(profile["parameters"], ["EHDebuggingMode"])


if __name__ == "__main__":
  absltest.main()
