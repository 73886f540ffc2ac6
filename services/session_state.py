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

"""Per-order state carried between the three checkout hooks.

The host calls the hooks as separate requests, so the verdict and the
captured handling charge have to outlive a single call. State is keyed by
order id: two orders checking out at the same time each get their own
`CheckoutSessionState` and cannot see each other's flags.
"""

import collections
import dataclasses
import logging
from decimal import Decimal
from typing import Optional

from enums import SessionPhase
from models import DiagnosticContext
from models import HandlingCharge
from services.flag_aggregator import FlagAggregator

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1024


@dataclasses.dataclass
class CheckoutSessionState:
  """State of one checkout pass for one order."""

  order_id: str
  user_id: Optional[str] = None
  original_charge: Optional[Decimal] = None
  iso_currency_code: Optional[str] = None
  phase: SessionPhase = SessionPhase.IDLE
  aggregator: FlagAggregator = dataclasses.field(default_factory=FlagAggregator)
  resolution: Optional[HandlingCharge] = None
  context: DiagnosticContext = dataclasses.field(
      default_factory=DiagnosticContext
  )

  def __post_init__(self):
    self.context.order_id = self.order_id
    self.context.user_id = self.user_id

  @property
  def verdict(self):
    return self.aggregator.verdict

  def capture_charge(self, charge: Decimal) -> None:
    """Stores the order's original handling charge.

    The first captured value wins for the rest of the pass.
    """
    if self.original_charge is not None:
      logger.warning(
          "Handling charge for order %s already captured; keeping %s",
          self.order_id,
          self.original_charge,
      )
      return
    self.original_charge = charge
    self.phase = SessionPhase.CHARGE_CAPTURED

  def resolve(self, result: HandlingCharge) -> None:
    self.resolution = result
    self.phase = SessionPhase.RESOLVED

  @property
  def is_resolved(self) -> bool:
    return self.phase == SessionPhase.RESOLVED


class SessionRegistry:
  """Process-wide map of order id to its current checkout pass.

  The registry is bounded; once it holds `max_sessions` entries the least
  recently started pass is dropped.
  """

  def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS):
    self.max_sessions = max_sessions
    self._sessions: collections.OrderedDict[str, CheckoutSessionState] = (
        collections.OrderedDict()
    )

  def begin(
      self, order_id: str, user_id: Optional[str] = None
  ) -> CheckoutSessionState:
    """Starts a new pass for `order_id`, discarding any previous one."""
    self._sessions.pop(order_id, None)
    state = CheckoutSessionState(order_id=order_id, user_id=user_id)
    self._sessions[order_id] = state
    while len(self._sessions) > self.max_sessions:
      evicted_id, _ = self._sessions.popitem(last=False)
      logger.warning("Evicted checkout session for order %s", evicted_id)
    return state

  def get(self, order_id: str) -> Optional[CheckoutSessionState]:
    return self._sessions.get(order_id)

  def __len__(self) -> int:
    return len(self._sessions)


# Global registry instance shared by all requests
registry = SessionRegistry()
