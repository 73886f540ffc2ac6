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

"""Checkout hook routes called by the order-management host.

Every route answers 200 with a usable body; failures inside the extension
are reported out of band and never surface as HTTP errors.
"""

import dependencies
from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Path
from models import CheckoutBeginRequest
from models import HandlingCharge
from models import HookResponse
from services.lifecycle_coordinator import LifecycleCoordinator

router = APIRouter(prefix="/checkout")


@router.post(
    "/{order_id}/begin",
    response_model=HookResponse,
    operation_id="checkout_begin",
)
async def checkout_begin(
    order_id: str = Path(...),
    request: CheckoutBeginRequest = Body(...),
    coordinator: LifecycleCoordinator = Depends(
        dependencies.get_lifecycle_coordinator
    ),
) -> HookResponse:
  """Capture the handling charge and validate the cart's line items."""
  status = await coordinator.on_checkout_begin(
      request.user_id, order_id, request.line_item_ids
  )
  return HookResponse(status=status)


@router.post(
    "/{order_id}/items/{line_item_id}/validate",
    response_model=HookResponse,
    operation_id="validate_item",
)
async def validate_item(
    order_id: str = Path(...),
    line_item_id: str = Path(...),
    coordinator: LifecycleCoordinator = Depends(
        dependencies.get_lifecycle_coordinator
    ),
) -> HookResponse:
  """Record one line item's exclusion flag."""
  status = await coordinator.on_validate_item(order_id, line_item_id)
  return HookResponse(status=status)


@router.post(
    "/{order_id}/handling-charge",
    response_model=HandlingCharge,
    operation_id="compute_handling_charge",
)
async def compute_handling_charge(
    order_id: str = Path(...),
    coordinator: LifecycleCoordinator = Depends(
        dependencies.get_lifecycle_coordinator
    ),
) -> HandlingCharge:
  """Return the handling charge the host should apply."""
  return await coordinator.on_compute_handling_charge(order_id)
