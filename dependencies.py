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

"""FastAPI dependencies for the extension server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Database session management for the store DB.
- Service instantiation (property lookup, settings store, diagnostics and
  the lifecycle coordinator).
"""

from typing import AsyncGenerator

import config
import db
from fastapi import Depends
from services.diagnostics import DiagnosticsReporter
from services.extension_settings import ExtensionSettingsStore
from services.lifecycle_coordinator import DEFAULT_CURRENCY
from services.lifecycle_coordinator import LifecycleCoordinator
from services.notification import NotificationSink
from services.property_lookup import PropertyLookup
from services.property_lookup import SqlPropertyLookup
from sqlalchemy.ext.asyncio import AsyncSession


async def get_store_db() -> AsyncGenerator[AsyncSession, None]:
  """Dependency provider for store DB session."""
  async with db.manager.session_factory() as session:
    yield session


def get_property_lookup(
    session: AsyncSession = Depends(get_store_db),
) -> PropertyLookup:
  """Dependency provider for the host property lookup."""
  return SqlPropertyLookup(session)


def get_settings_store(
    session: AsyncSession = Depends(get_store_db),
) -> ExtensionSettingsStore:
  """Dependency provider for ExtensionSettingsStore."""
  return ExtensionSettingsStore(session)


def get_notification_sink() -> NotificationSink:
  """Dependency provider for the incident sink."""
  return config.get_notification_sink()


def get_lifecycle_coordinator(
    lookup: PropertyLookup = Depends(get_property_lookup),
    settings_store: ExtensionSettingsStore = Depends(get_settings_store),
    sink: NotificationSink = Depends(get_notification_sink),
) -> LifecycleCoordinator:
  """Dependency provider for LifecycleCoordinator."""
  return LifecycleCoordinator(
      lookup,
      DiagnosticsReporter(sink),
      settings_store=settings_store,
      default_currency=config.flag_value("default_currency", DEFAULT_CURRENCY),
  )
