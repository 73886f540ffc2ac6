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

"""Custom exceptions for the handling exclusion extension."""

from enums import ErrorKind


class ExtensionError(Exception):
  """Base class for all extension exceptions."""

  kind: ErrorKind | None = None

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class LookupFailedError(ExtensionError):
  """Raised when the host property store cannot produce a field."""

  kind = ErrorKind.LOOKUP

  def __init__(self, message: str):
    super().__init__(message, code="FIELD_LOOKUP_FAILED", status_code=502)


class ChargeConversionError(ExtensionError):
  """Raised when a stored handling charge is not a number."""

  kind = ErrorKind.CONVERSION

  def __init__(self, message: str):
    super().__init__(message, code="CHARGE_CONVERSION_FAILED", status_code=422)


class NotificationDeliveryError(ExtensionError):
  """Raised by notification sinks when an incident cannot be delivered."""

  kind = ErrorKind.NOTIFICATION

  def __init__(self, message: str):
    super().__init__(message, code="NOTIFICATION_FAILED", status_code=502)
