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

"""Database management and persistence layer for the extension.

This module stands in for the host's property store. It provides the schema
definitions, database session management and asynchronous data access helpers
used by the SQL-backed `PropertyLookup` and by the extension settings store.
It utilizes SQLAlchemy with SQLite (via aiosqlite).

Key features include:
- `DatabaseManager`: Handles asynchronous engine initialization and session
  factory setup for the store database.
- WAL Mode: Automatically enables SQLite Write-Ahead Logging so the host and
  the extension can read the store concurrently.
- Declarative Models: Defines tables for documents (cart lines), products,
  orders, system properties and persisted extension settings.
- Data Access Helpers: Asynchronous getters used by the property lookup and
  the configuration routes.
"""

import logging
from typing import Dict
from typing import Optional

from sqlalchemy import Column
from sqlalchemy import ForeignKey
from sqlalchemy import String
from sqlalchemy import select
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

StoreBase = declarative_base()


class DatabaseManager:
  """Manages the database engine and sessions without using global variables."""

  def __init__(self) -> None:
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[sessionmaker] = None

  async def init_db(self, db_path: str) -> None:
    """Initializes the database engine and creates tables."""
    url = f"sqlite+aiosqlite:///{db_path}"
    self.engine = create_async_engine(url, echo=False)

    async with self.engine.connect() as conn:
      await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(StoreBase.metadata.create_all)
    logger.info("Store database ready at %s", db_path)

  async def close(self) -> None:
    """Closes the database engine."""
    if self.engine:
      await self.engine.dispose()


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


class Product(StoreBase):
  __tablename__ = "products"

  id = Column(String, primary_key=True)
  display_name = Column(String)
  sku = Column(String, nullable=True)
  # "Yes", "No", or anything else / missing
  exclude_handling = Column(String, nullable=True)


class Document(StoreBase):
  """A cart line item, pointing at the product it was ordered from."""

  __tablename__ = "documents"

  id = Column(String, primary_key=True)
  product_id = Column(String, ForeignKey("products.id"))


class Order(StoreBase):
  __tablename__ = "orders"

  id = Column(String, primary_key=True)
  user_id = Column(String, nullable=True)
  # Stored as text, exactly as the host keeps it
  handling_charge = Column(String, nullable=True)


class SystemProperty(StoreBase):
  __tablename__ = "system_properties"

  name = Column(String, primary_key=True)
  value = Column(String, nullable=True)


class ExtensionSetting(StoreBase):
  __tablename__ = "extension_settings"

  key = Column(String, primary_key=True)
  value = Column(String)


# --- Data Access Helpers ---


async def get_document(
    session: AsyncSession, document_id: str
) -> Optional[Document]:
  """Retrieves a cart line item by ID."""
  return await session.get(Document, document_id)


async def get_product(
    session: AsyncSession, product_id: str
) -> Optional[Product]:
  """Retrieves a product by ID."""
  return await session.get(Product, product_id)


async def get_order(session: AsyncSession, order_id: str) -> Optional[Order]:
  """Retrieves an order by ID."""
  return await session.get(Order, order_id)


async def get_system_property(
    session: AsyncSession, name: str
) -> Optional[SystemProperty]:
  """Retrieves a storefront-wide system property by name."""
  return await session.get(SystemProperty, name)


async def get_extension_settings(session: AsyncSession) -> Dict[str, str]:
  """Retrieves all persisted extension settings as a key/value mapping."""
  result = await session.execute(select(ExtensionSetting))
  return {row.key: row.value for row in result.scalars().all()}


async def save_extension_setting(
    session: AsyncSession, key: str, value: str
) -> None:
  """Saves or updates a single extension setting."""
  existing = await session.get(ExtensionSetting, key)
  if existing:
    existing.value = value
  else:
    session.add(ExtensionSetting(key=key, value=value))
