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

"""Enumerations for the handling exclusion extension.

This module defines the enums shared by the decision engine and the HTTP
surface: the tri-state exclusion flag stored on products, the entity kinds
understood by the host property store, the phases of a checkout pass, and the
error taxonomy used by fail-safe recovery.
"""

import enum


class ExclusionFlag(str, enum.Enum):
  """Per-product `excludeHandling` metadata value."""

  EXCLUDABLE = "Yes"
  NOT_EXCLUDABLE = "No"
  UNKNOWN = ""

  @classmethod
  def parse(cls, raw: str | None) -> "ExclusionFlag":
    """Maps a raw stored value onto a flag.

    Matching is exact: anything other than "Yes" or "No" (including None and
    differently cased values) is UNKNOWN.
    """
    if raw == cls.EXCLUDABLE.value:
      return cls.EXCLUDABLE
    if raw == cls.NOT_EXCLUDABLE.value:
      return cls.NOT_EXCLUDABLE
    return cls.UNKNOWN


class EntityKind(str, enum.Enum):
  DOCUMENT = "Document"
  PRODUCT = "Product"
  ORDER = "Order"
  SYSTEM = "System"


class SessionPhase(str, enum.Enum):
  IDLE = "idle"
  CHARGE_CAPTURED = "charge_captured"
  VALIDATING = "validating"
  RESOLVED = "resolved"


class HookStatus(str, enum.Enum):
  SUCCESS = "success"


class ErrorKind(str, enum.Enum):
  LOOKUP = "lookup"
  CONVERSION = "conversion"
  NOTIFICATION = "notification"
