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

"""Checkout lifecycle hooks for the handling exclusion extension.

This module provides the `LifecycleCoordinator` class, which implements the
three entry points the order-management host calls during checkout:

- `on_checkout_begin`: starts a new pass for the order, captures the order's
  current handling charge and currency, and validates every cart line.
- `on_validate_item`: reads one cart line's product and its `excludeHandling`
  flag and feeds it to the order's `FlagAggregator`.
- `on_compute_handling_charge`: returns 0.00 when every line was flagged
  "Yes", otherwise the charge captured at the start of the pass.

None of the hooks ever fails towards the host. Lookup and conversion problems
are turned into `Result` values, reported through the `DiagnosticsReporter`,
and recovered from by charging the fee.
"""

from decimal import Decimal
from decimal import InvalidOperation
from typing import Optional, Sequence

from enums import EntityKind
from enums import HookStatus
from enums import SessionPhase
from exceptions import ChargeConversionError
from exceptions import ExtensionError
from exceptions import LookupFailedError
from models import DiagnosticContext
from models import ExtensionSettings
from models import HandlingCharge
from models import LineItem
from result import Result
from services import property_lookup
from services import session_state
from services.diagnostics import DiagnosticsReporter
from services.extension_settings import ExtensionSettingsStore
from services.property_lookup import PropertyLookup
from services.property_lookup import UNKNOWN_STOREFRONT
from services.session_state import CheckoutSessionState
from services.session_state import SessionRegistry

ZERO_CHARGE = Decimal("0.00")
DEFAULT_CURRENCY = "USD"

OP_CHECKOUT_BEGIN = "CheckoutBegin"
OP_VALIDATE_ITEM = "ValidateItem"
OP_COMPUTE_HANDLING_CHARGE = "ComputeHandlingCharge"


def parse_charge(raw: str) -> Result[Decimal]:
  """Parses a stored handling charge."""
  try:
    charge = Decimal(raw.strip())
  except (InvalidOperation, AttributeError):
    return Result.fail(
        ChargeConversionError(f"Handling charge {raw!r} is not a number")
    )
  if not charge.is_finite():
    return Result.fail(
        ChargeConversionError(f"Handling charge {raw!r} is not finite")
    )
  return Result.ok(charge)


class LifecycleCoordinator:
  """Implements the checkout hooks on top of per-order session state."""

  def __init__(
      self,
      lookup: PropertyLookup,
      reporter: DiagnosticsReporter,
      settings_store: Optional[ExtensionSettingsStore] = None,
      registry: Optional[SessionRegistry] = None,
      default_currency: str = DEFAULT_CURRENCY,
  ):
    self.lookup = lookup
    self.reporter = reporter
    self.settings_store = settings_store
    self.registry = registry if registry is not None else session_state.registry
    self.default_currency = default_currency

  # --- Hooks ---

  async def on_checkout_begin(
      self, user_id: str, order_id: str, line_item_ids: Sequence[str]
  ) -> HookStatus:
    """Starts a checkout pass and validates every supplied line item."""
    await self._refresh_settings()
    state = self.registry.begin(order_id, user_id)
    self.reporter.log_line(
        "Checkout begin for order %s (%d line items)",
        order_id,
        len(line_item_ids),
    )

    try:
      charge = await self.capture_charge(order_id)
      if charge.is_ok:
        state.capture_charge(charge.value)
        self.reporter.trace("Storefront handling charge: %s", charge.value)
      else:
        await self._report(OP_CHECKOUT_BEGIN, state.context, charge.error)

      currency = await self._lookup(
          EntityKind.SYSTEM, property_lookup.SYSTEM_ISO_CURRENCY_CODE, order_id
      )
      if currency.is_ok and currency.value:
        state.iso_currency_code = currency.value
      elif not currency.is_ok:
        await self._report(OP_CHECKOUT_BEGIN, state.context, currency.error)

      for line_item_id in line_item_ids:
        await self._validate(state, line_item_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      state.aggregator.observe_failure()
      await self._report(OP_CHECKOUT_BEGIN, state.context, e)

    self.reporter.trace(
        "After line items: saw_excludable=%s saw_non_excludable=%s",
        state.verdict.saw_excludable,
        state.verdict.saw_non_excludable,
    )
    return HookStatus.SUCCESS

  async def on_validate_item(
      self, order_id: str, line_item_id: str
  ) -> HookStatus:
    """Feeds one line item's exclusion flag into the order's verdict."""
    await self._refresh_settings()
    state = self.registry.get(order_id)
    if state is None:
      self.reporter.warning(
          "Line item %s validated before checkout began for order %s",
          line_item_id,
          order_id,
      )
      state = self.registry.begin(order_id)
    if state.is_resolved:
      self.reporter.warning(
          "Ignoring line item %s: handling for order %s already resolved",
          line_item_id,
          order_id,
      )
      return HookStatus.SUCCESS

    self.reporter.log_line(
        "Validate line item %s for order %s", line_item_id, order_id
    )
    try:
      await self._validate(state, line_item_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      state.aggregator.observe_failure()
      await self._report(OP_VALIDATE_ITEM, state.context, e)
    return HookStatus.SUCCESS

  async def on_compute_handling_charge(self, order_id: str) -> HandlingCharge:
    """Returns the handling charge the host should apply to the order."""
    await self._refresh_settings()
    state = self.registry.get(order_id)
    if state is None:
      self.reporter.warning(
          "Handling charge requested without a checkout pass for order %s;"
          " not waiving",
          order_id,
      )
      state = self.registry.begin(order_id)
    if state.is_resolved:
      return state.resolution

    try:
      result = await self._resolve_charge(state)
    except Exception as e:  # pylint: disable=broad-exception-caught
      await self._report(OP_COMPUTE_HANDLING_CHARGE, state.context, e)
      result = HandlingCharge(
          handling_charge=(
              state.original_charge
              if state.original_charge is not None
              else ZERO_CHARGE
          ),
          iso_currency_code=state.iso_currency_code or self.default_currency,
      )

    state.resolve(result)
    self.reporter.log_line(
        "Handling charge for order %s: %s %s",
        order_id,
        result.handling_charge,
        result.iso_currency_code,
    )
    return result

  # --- Fallible steps ---

  async def capture_charge(self, order_id: str) -> Result[Decimal]:
    """Reads and parses the order's current handling charge."""
    raw = await self._lookup(
        EntityKind.ORDER, property_lookup.ORDER_HANDLING_CHARGE, order_id
    )
    return raw.and_then(parse_charge)

  async def resolve_line_item(
      self, line_item_id: str, context: DiagnosticContext
  ) -> Result[LineItem]:
    """Resolves a cart line's product fields, keeping breadcrumbs current."""
    context.document_id = line_item_id
    context.product_id = None
    context.product_name = None
    context.product_sku = None
    context.exclude_handling_flag = None

    product_id = await self._lookup(
        EntityKind.DOCUMENT, property_lookup.DOCUMENT_PRODUCT_ID, line_item_id
    )
    if not product_id.is_ok:
      return product_id
    context.product_id = product_id.value

    fields = (
        (property_lookup.PRODUCT_DISPLAY_NAME, "product_name"),
        (property_lookup.PRODUCT_SKU, "product_sku"),
        (property_lookup.PRODUCT_EXCLUDE_HANDLING, "exclude_handling_flag"),
    )
    for field_name, attr in fields:
      value = await self._lookup(
          EntityKind.PRODUCT, field_name, product_id.value
      )
      if not value.is_ok:
        return value
      setattr(context, attr, value.value)

    return Result.ok(
        LineItem(
            id=line_item_id,
            product_id=context.product_id,
            product_name=context.product_name,
            product_sku=context.product_sku,
            raw_flag=context.exclude_handling_flag,
        )
    )

  # --- Internals ---

  async def _validate(
      self, state: CheckoutSessionState, line_item_id: str
  ) -> Result[LineItem]:
    state.phase = SessionPhase.VALIDATING
    item = await self.resolve_line_item(line_item_id, state.context)

    if item.is_ok:
      self.reporter.trace(
          "Validating line item %s: product=%s name=%s sku=%s flag=%r",
          line_item_id,
          item.value.product_id,
          item.value.product_name,
          item.value.product_sku,
          item.value.raw_flag,
      )
      state.aggregator.observe(item.value.exclude_handling)
    else:
      state.aggregator.observe_failure()
      await self._report(OP_VALIDATE_ITEM, state.context, item.error)

    self.reporter.trace(
        "Order %s verdict: saw_excludable=%s saw_non_excludable=%s",
        state.order_id,
        state.verdict.saw_excludable,
        state.verdict.saw_non_excludable,
    )
    return item

  async def _resolve_charge(
      self, state: CheckoutSessionState
  ) -> HandlingCharge:
    charge = state.original_charge
    if charge is None:
      # Capture failed (or never happened); retry once against the live order.
      live = await self.capture_charge(state.order_id)
      if live.is_ok:
        state.capture_charge(live.value)
        charge = live.value
      else:
        await self._report(
            OP_COMPUTE_HANDLING_CHARGE, state.context, live.error
        )
        charge = ZERO_CHARGE

    currency = state.iso_currency_code
    if not currency:
      looked_up = await self._lookup(
          EntityKind.SYSTEM,
          property_lookup.SYSTEM_ISO_CURRENCY_CODE,
          state.order_id,
      )
      if not looked_up.is_ok:
        await self._report(
            OP_COMPUTE_HANDLING_CHARGE, state.context, looked_up.error
        )
      currency = looked_up.unwrap_or("") or self.default_currency
      state.iso_currency_code = currency

    waived = state.aggregator.waives_handling
    self.reporter.trace(
        "Order %s: original charge %s, waived=%s",
        state.order_id,
        charge,
        waived,
    )
    return HandlingCharge(
        handling_charge=ZERO_CHARGE if waived else charge,
        iso_currency_code=currency,
    )

  async def _lookup(
      self, entity_kind: EntityKind, field_name: str, entity_id: Optional[str]
  ) -> Result[str]:
    try:
      return Result.ok(
          await self.lookup.get_field(entity_kind, field_name, entity_id)
      )
    except ExtensionError as e:
      return Result.fail(e)
    except Exception as e:  # pylint: disable=broad-exception-caught
      return Result.fail(
          LookupFailedError(
              f"{entity_kind.value}.{field_name} for '{entity_id}': {e}"
          )
      )

  async def _refresh_settings(self) -> ExtensionSettings:
    settings = ExtensionSettings()
    if self.settings_store is not None:
      try:
        settings = await self.settings_store.load()
      except Exception as e:  # pylint: disable=broad-exception-caught
        self.reporter.warning("Using default extension settings: %s", e)
    self.reporter.debug_mode = settings.debug_mode
    return settings

  async def _report(
      self,
      operation: str,
      context: DiagnosticContext,
      error: Optional[Exception],
  ) -> None:
    name = await self._lookup(
        EntityKind.SYSTEM, property_lookup.SYSTEM_STOREFRONT_NAME, None
    )
    self.reporter.storefront_name = name.unwrap_or("") or UNKNOWN_STOREFRONT
    await self.reporter.report_failure(operation, context, error)
