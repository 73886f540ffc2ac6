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

"""Extension profile and configuration routes."""

import json
import pathlib

import dependencies
from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from models import ExtensionProfile
from models import ExtensionSettings
from services.extension_settings import ExtensionSettingsStore

router = APIRouter()

PROFILE_PATH = pathlib.Path(__file__).parent / "extension_profile.json"


@router.get(
    "/.well-known/handling-extension",
    response_model=ExtensionProfile,
    summary="Get Extension Profile",
)
async def get_extension_profile() -> ExtensionProfile:
  """Returns the extension's names, version and configuration parameters."""
  with open(PROFILE_PATH, "r", encoding="utf-8") as f:
    return ExtensionProfile(**json.load(f))


@router.get(
    "/extension/config",
    response_model=ExtensionSettings,
    operation_id="get_extension_config",
)
async def get_extension_config(
    store: ExtensionSettingsStore = Depends(dependencies.get_settings_store),
) -> ExtensionSettings:
  """Returns the persisted extension options."""
  return await store.load()


@router.put(
    "/extension/config",
    response_model=ExtensionSettings,
    operation_id="update_extension_config",
)
async def update_extension_config(
    settings: ExtensionSettings = Body(...),
    store: ExtensionSettingsStore = Depends(dependencies.get_settings_store),
) -> ExtensionSettings:
  """Persists the extension options."""
  return await store.save(settings)
