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

"""Database initialization script for the extension's store database.

This script imports products, cart line items (documents), orders and
storefront system properties from CSV files into the configured SQLite
database. It clears any existing rows in those tables before populating them
with the new dataset. Extension settings are left untouched.

Usage:
  uv run import_csv.py --db_path=... --data_dir=...
"""

import asyncio
import csv
import logging
import os
from absl import app as absl_app
from absl import flags
import db
from db import Document
from db import Order
from db import Product
from db import SystemProperty
from sqlalchemy import delete

FLAGS = flags.FLAGS
flags.DEFINE_string("db_path", "store.db", "Path to the store DB")
flags.DEFINE_string(
    "data_dir",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data"),
    "Directory containing products.csv, documents.csv and orders.csv",
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _optional(row: dict, key: str) -> str | None:
  value = row.get(key)
  return value if value else None


def _read_rows(data_dir: str, filename: str) -> list[dict]:
  path = os.path.join(data_dir, filename)
  if not os.path.exists(path):
    logger.info("Skipping %s (not found)", filename)
    return []
  with open(path, "r") as f:
    return list(csv.DictReader(f))


async def import_csv_data() -> None:
  """Reads CSV files and populates the database."""
  data_dir = FLAGS.data_dir
  # Ensure tables exist
  await db.manager.init_db(FLAGS.db_path)

  try:
    async with db.manager.session_factory() as session:
      logger.info("Clearing existing documents, products and orders...")
      await session.execute(delete(Document))
      await session.execute(delete(Product))
      await session.execute(delete(Order))
      await session.execute(delete(SystemProperty))

      logger.info("Importing Products from CSV...")
      session.add_all([
          Product(
              id=row["id"],
              display_name=row["display_name"],
              sku=_optional(row, "sku"),
              exclude_handling=_optional(row, "exclude_handling"),
          )
          for row in _read_rows(data_dir, "products.csv")
      ])

      logger.info("Importing Documents from CSV...")
      session.add_all([
          Document(id=row["id"], product_id=row["product_id"])
          for row in _read_rows(data_dir, "documents.csv")
      ])

      logger.info("Importing Orders from CSV...")
      session.add_all([
          Order(
              id=row["id"],
              user_id=_optional(row, "user_id"),
              handling_charge=_optional(row, "handling_charge"),
          )
          for row in _read_rows(data_dir, "orders.csv")
      ])

      logger.info("Importing System Properties from CSV...")
      session.add_all([
          SystemProperty(name=row["name"], value=row["value"])
          for row in _read_rows(data_dir, "system_properties.csv")
      ])

      await session.commit()

    logger.info("Database populated from CSVs.")
  finally:
    await db.manager.close()


def main(argv) -> None:
  """Main entry point for the CSV import script."""
  del argv
  asyncio.run(import_csv_data())


if __name__ == "__main__":
  absl_app.run(main)
