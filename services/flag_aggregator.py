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

"""Folds per-item exclusion flags into an order-level handling verdict.

An order only goes without a handling charge when every line examined was
explicitly flagged "Yes" and at least one line was examined. A single "No",
unrecognised or missing flag keeps the charge for the whole order.
"""

import dataclasses

from enums import ExclusionFlag


@dataclasses.dataclass
class ExclusionVerdict:
  """Running observations for one checkout pass.

  Both fields start False and only ever flip to True within a pass.
  """

  saw_excludable: bool = False
  saw_non_excludable: bool = False

  @property
  def waives_handling(self) -> bool:
    return self.saw_excludable and not self.saw_non_excludable


def resolve(verdict: ExclusionVerdict) -> bool:
  """Returns True when the handling charge should be waived."""
  return verdict.waives_handling


class FlagAggregator:
  """Accumulates exclusion flags into an `ExclusionVerdict`."""

  def __init__(self, verdict: ExclusionVerdict | None = None):
    self.verdict = verdict if verdict is not None else ExclusionVerdict()

  def observe(self, flag: ExclusionFlag | str | None) -> ExclusionVerdict:
    """Records one line item's flag.

    Raw strings are parsed first. UNKNOWN folds into NOT_EXCLUDABLE so a fee
    is never waived without an explicit instruction.
    """
    if not isinstance(flag, ExclusionFlag):
      flag = ExclusionFlag.parse(flag)

    if flag == ExclusionFlag.EXCLUDABLE:
      self.verdict.saw_excludable = True
    else:
      self.verdict.saw_non_excludable = True
    return self.verdict

  def observe_failure(self) -> ExclusionVerdict:
    """Records a line whose flag could not be read."""
    return self.observe(ExclusionFlag.UNKNOWN)

  @property
  def waives_handling(self) -> bool:
    return resolve(self.verdict)
