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

"""Pydantic models for the handling exclusion extension.

These models describe the payloads exchanged with the order-management host
(hook requests and responses), the persisted extension settings, and the
records the engine builds while examining a cart.
"""

import datetime
from decimal import Decimal
from typing import Optional

from enums import ExclusionFlag
from enums import HookStatus
from pydantic import BaseModel
from pydantic import Field


class LineItem(BaseModel):
  """A cart line as resolved from the host property store."""

  id: str
  product_id: str
  product_name: Optional[str] = None
  product_sku: Optional[str] = None
  raw_flag: Optional[str] = None

  @property
  def exclude_handling(self) -> ExclusionFlag:
    return ExclusionFlag.parse(self.raw_flag)


class CheckoutBeginRequest(BaseModel):
  user_id: str
  line_item_ids: list[str] = Field(default_factory=list)


class HookResponse(BaseModel):
  status: HookStatus = HookStatus.SUCCESS


class HandlingCharge(BaseModel):
  """The handling charge handed back to the host."""

  handling_charge: Decimal
  iso_currency_code: str


class ExtensionSettings(BaseModel):
  """Extension options persisted by the host configuration page."""

  debug_mode: bool = False


class ExtensionProfile(BaseModel):
  unique_name: str
  display_name: str
  version: str
  parameters: list[str] = []


class DiagnosticContext(BaseModel):
  """Best-effort breadcrumbs attached to incident reports.

  Every field is overwritten as soon as a newer value is observed, so this is
  the last thing seen rather than an audit trail.
  """

  user_id: Optional[str] = None
  order_id: Optional[str] = None
  document_id: Optional[str] = None
  product_id: Optional[str] = None
  product_name: Optional[str] = None
  product_sku: Optional[str] = None
  exclude_handling_flag: Optional[str] = None


class Incident(BaseModel):
  operation: str
  occurred_at: datetime.datetime
  subject: str
  body: str


class DeliveryOutcome(BaseModel):
  delivered: bool
  detail: str = ""
