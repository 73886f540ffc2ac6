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

"""Read-only access to the host's document, product, order and system fields.

`PropertyLookup` is the contract the engine depends on. `SqlPropertyLookup`
implements it over the store database in `db`.
"""

import abc
import logging

import db
from enums import EntityKind
from exceptions import LookupFailedError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Field names, as the host spells them.
DOCUMENT_PRODUCT_ID = "PRODUCT_ID"
PRODUCT_DISPLAY_NAME = "DISPLAY_NAME"
PRODUCT_SKU = "PRODUCT_SKU"
PRODUCT_EXCLUDE_HANDLING = "excludeHandling"
ORDER_HANDLING_CHARGE = "HandlingCharge"
SYSTEM_STOREFRONT_NAME = "STOREFRONT_NAME"
SYSTEM_ISO_CURRENCY_CODE = "IsoCurrencyCode"

UNKNOWN_STOREFRONT = "unknown"


class PropertyLookup(abc.ABC):
  """Accessor for host fields.

  Implementations raise `LookupFailedError` for any failure, including a
  missing entity or an unknown field name.
  """

  @abc.abstractmethod
  async def get_field(
      self, entity_kind: EntityKind, field_name: str, entity_id: str | None
  ) -> str:
    """Returns the field value as text ("" when the field is empty)."""


class SqlPropertyLookup(PropertyLookup):
  """Property lookup backed by the store database."""

  _COLUMNS = {
      (EntityKind.DOCUMENT, DOCUMENT_PRODUCT_ID): "product_id",
      (EntityKind.PRODUCT, PRODUCT_DISPLAY_NAME): "display_name",
      (EntityKind.PRODUCT, PRODUCT_SKU): "sku",
      (EntityKind.PRODUCT, PRODUCT_EXCLUDE_HANDLING): "exclude_handling",
      (EntityKind.ORDER, ORDER_HANDLING_CHARGE): "handling_charge",
  }

  def __init__(self, session: AsyncSession):
    self.session = session

  async def get_field(
      self, entity_kind: EntityKind, field_name: str, entity_id: str | None
  ) -> str:
    try:
      if entity_kind == EntityKind.SYSTEM:
        # System properties are storefront-wide; the entity id is ignored.
        row = await db.get_system_property(self.session, field_name)
        column = "value"
      else:
        column = self._COLUMNS.get((entity_kind, field_name))
        if column is None:
          raise LookupFailedError(
              f"Unknown {entity_kind.value} field '{field_name}'"
          )
        row = await self._get_entity(entity_kind, entity_id)
    except SQLAlchemyError as e:
      raise LookupFailedError(
          f"Store error reading {entity_kind.value}.{field_name}"
          f" for '{entity_id}': {e}"
      ) from e

    if row is None:
      missing = field_name if entity_kind == EntityKind.SYSTEM else entity_id
      raise LookupFailedError(f"{entity_kind.value} '{missing}' not found")
    value = getattr(row, column)
    return "" if value is None else str(value)

  async def _get_entity(self, entity_kind: EntityKind, entity_id: str | None):
    if not entity_id:
      return None
    if entity_kind == EntityKind.DOCUMENT:
      return await db.get_document(self.session, entity_id)
    if entity_kind == EntityKind.PRODUCT:
      return await db.get_product(self.session, entity_id)
    return await db.get_order(self.session, entity_id)


async def get_storefront_name(lookup: PropertyLookup) -> str:
  """Returns the STOREFRONT_NAME system property, or UNKNOWN_STOREFRONT."""
  try:
    name = await lookup.get_field(
        EntityKind.SYSTEM, SYSTEM_STOREFRONT_NAME, None
    )
  except LookupFailedError as e:
    logger.warning("Storefront name unavailable: %s", e)
    return UNKNOWN_STOREFRONT
  return name or UNKNOWN_STOREFRONT
