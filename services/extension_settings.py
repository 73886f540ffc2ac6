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

"""Persisted extension options.

The host's configuration page stores the options under the parameter names
the extension declares. Only one option exists today: whether verbose
debugging information is written to the logs.
"""

import db
from exceptions import ExtensionError
from exceptions import LookupFailedError
from models import ExtensionSettings
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

DEBUG_MODE_KEY = "EHDebuggingMode"


class ExtensionSettingsStore:
  """Reads and writes `ExtensionSettings` in the store database."""

  def __init__(self, session: AsyncSession):
    self.session = session

  async def load(self) -> ExtensionSettings:
    try:
      values = await db.get_extension_settings(self.session)
    except SQLAlchemyError as e:
      raise LookupFailedError(f"Could not read extension settings: {e}") from e
    return ExtensionSettings(debug_mode=values.get(DEBUG_MODE_KEY) == "true")

  async def save(self, settings: ExtensionSettings) -> ExtensionSettings:
    try:
      await db.save_extension_setting(
          self.session,
          DEBUG_MODE_KEY,
          "true" if settings.debug_mode else "false",
      )
      await self.session.commit()
    except SQLAlchemyError as e:
      await self.session.rollback()
      raise ExtensionError(
          f"Could not save extension settings: {e}", code="SETTINGS_NOT_SAVED"
      ) from e
    return settings
