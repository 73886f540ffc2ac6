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

"""A minimal success-or-error container for fallible engine steps.

Hooks never raise towards the host. Internally, each step that talks to an
external collaborator returns a `Result` so the recovery branch is an explicit
value the caller inspects (and tests can assert on) instead of an exception
escaping through the hook.
"""

import dataclasses
from typing import Callable, Generic, Optional, TypeVar

from enums import ErrorKind
from exceptions import ExtensionError

T = TypeVar("T")


@dataclasses.dataclass(frozen=True)
class Result(Generic[T]):
  """Either a value or the error that prevented producing it."""

  value: Optional[T] = None
  error: Optional[ExtensionError] = None

  @classmethod
  def ok(cls, value: T) -> "Result[T]":
    return cls(value=value)

  @classmethod
  def fail(cls, error: ExtensionError) -> "Result[T]":
    return cls(error=error)

  @property
  def is_ok(self) -> bool:
    return self.error is None

  @property
  def error_kind(self) -> Optional[ErrorKind]:
    return self.error.kind if self.error is not None else None

  def unwrap_or(self, default: T) -> T:
    return self.value if self.is_ok else default

  def and_then(self, fn: Callable[[T], "Result"]) -> "Result":
    """Chains a further fallible step onto a successful result."""
    if not self.is_ok:
      return self
    return fn(self.value)
