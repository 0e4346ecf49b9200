"""Supply-chain operation endpoints.

Each external operation is a declarative OperationRoute: the request model
that validates its body, the ledger write (if any), the read that returns
the canonical entity, and how that record is shaped for the response. A
single endpoint factory turns every entry into a POST route, so all
operations share one protocol and one error envelope.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Depends

from apps.supply_chain_gateway import metrics
from apps.supply_chain_gateway.app_context import AppContext
from apps.supply_chain_gateway.dependencies import get_context
from apps.supply_chain_gateway.errors import GatewayError, normalize_error
from apps.supply_chain_gateway.ledger_client import LedgerCall
from apps.supply_chain_gateway.mapper import (
    map_company,
    map_drug,
    map_purchase_order,
    map_shipment,
    to_jsonable,
)
from apps.supply_chain_gateway.orchestrator import read_record
from apps.supply_chain_gateway.schemas import (
    AddDrugRequest,
    CreatePORequest,
    CreateShipmentRequest,
    DrugLookupRequest,
    ErrorResponse,
    GatewayRequest,
    RegisterCompanyRequest,
    RetailDrugRequest,
    SuccessResponse,
    UpdateShipmentRequest,
)
from libs.common.logging import operation_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationRoute:
    """Declarative description of one external operation.

    Attributes:
        name: Operation name, also the URL path segment
        request_model: Pydantic model validating the request body
        build_read: Builds the read call returning the canonical record
        shape: Converts the raw record into the response result
        success_message: Envelope message on success
        failure_message: Envelope message on failure
        build_write: Builds the mutating call; None for read-only operations
    """

    name: str
    request_model: type[GatewayRequest]
    build_read: Callable[[Any], LedgerCall]
    shape: Callable[[Any], Any]
    success_message: str
    failure_message: str
    build_write: Callable[[Any], LedgerCall] | None = None

    @property
    def path(self) -> str:
        return f"/{self.name}"

    @property
    def mutating(self) -> bool:
        return self.build_write is not None


def _drug_key(op: str) -> Callable[[Any], LedgerCall]:
    return lambda r: LedgerCall(op, (r.drug_name, r.serial_number))


def _shipment_key(r: Any) -> LedgerCall:
    return LedgerCall("getRegisteredShipment", (r.buyer_crn, r.drug_name))


OPERATIONS: tuple[OperationRoute, ...] = (
    OperationRoute(
        name="registerCompany",
        request_model=RegisterCompanyRequest,
        build_write=lambda r: LedgerCall(
            "registerCompany", (r.company_crn, r.company_name, r.location, r.role)
        ),
        build_read=lambda r: LedgerCall("getRegisteredCompany", (r.company_crn,)),
        shape=map_company,
        success_message="Company registered",
        failure_message="Error registering company",
    ),
    OperationRoute(
        name="addDrug",
        request_model=AddDrugRequest,
        build_write=lambda r: LedgerCall(
            "addDrug", (r.drug_name, r.serial_number, r.maf_date, r.exp_date, r.company_crn)
        ),
        build_read=_drug_key("getRegisteredDrug"),
        shape=map_drug,
        success_message="Drug added",
        failure_message="Error adding drug",
    ),
    OperationRoute(
        name="createPO",
        request_model=CreatePORequest,
        build_write=lambda r: LedgerCall(
            "createPO", (r.buyer_crn, r.seller_crn, r.drug_name, r.quantity)
        ),
        build_read=lambda r: LedgerCall("getRegisteredPO", (r.buyer_crn, r.drug_name)),
        shape=map_purchase_order,
        success_message="Purchase order created",
        failure_message="Error creating purchase order",
    ),
    OperationRoute(
        name="createShipment",
        request_model=CreateShipmentRequest,
        build_write=lambda r: LedgerCall(
            "createShipment",
            (r.buyer_crn, r.drug_name, list(r.list_of_assets), r.transporter_crn),
        ),
        build_read=_shipment_key,
        shape=map_shipment,
        success_message="Shipment created",
        failure_message="Error creating shipment",
    ),
    OperationRoute(
        name="updateShipment",
        request_model=UpdateShipmentRequest,
        build_write=lambda r: LedgerCall(
            "updateShipment", (r.buyer_crn, r.drug_name, r.transporter_crn)
        ),
        build_read=_shipment_key,
        shape=map_shipment,
        success_message="Shipment updated",
        failure_message="Error updating shipment",
    ),
    OperationRoute(
        name="retailDrug",
        request_model=RetailDrugRequest,
        build_write=lambda r: LedgerCall(
            "retailDrug", (r.drug_name, r.serial_number, r.retailer_crn, r.customer_aadhar)
        ),
        build_read=_drug_key("getRegisteredDrug"),
        shape=map_drug,
        success_message="Drug retailed",
        failure_message="Error retailing drug",
    ),
    OperationRoute(
        name="viewHistory",
        request_model=DrugLookupRequest,
        build_read=_drug_key("viewHistory"),
        shape=to_jsonable,
        success_message="Drug history retrieved",
        failure_message="Error viewing drug history",
    ),
    OperationRoute(
        name="viewDrugCurrentState",
        request_model=DrugLookupRequest,
        build_read=_drug_key("viewDrugCurrentState"),
        shape=to_jsonable,
        success_message="Drug current state retrieved",
        failure_message="Error viewing drug current state",
    ),
)

FAILURE_MESSAGES: dict[str, str] = {route.path: route.failure_message for route in OPERATIONS}

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status_code: {"model": ErrorResponse} for status_code in (400, 422, 500, 502)
}


async def run_operation(route: OperationRoute, body: GatewayRequest, ctx: AppContext) -> Any:
    """Run one operation and return its shaped result.

    Mutating operations go through the orchestrator; read-only ones are a
    single query with no signer involvement.
    """
    read_call = route.build_read(body)
    if route.build_write is not None:
        record = await ctx.orchestrator.execute(route.build_write(body), read_call)
    else:
        record = await read_record(ctx.ledger, read_call)
    return route.shape(record)


def _make_endpoint(route: OperationRoute) -> Callable[..., Any]:
    async def endpoint(
        body: route.request_model,  # type: ignore[name-defined]
        ctx: AppContext = Depends(get_context),
    ) -> SuccessResponse:
        with operation_context(route.name):
            try:
                result = await run_operation(route, body, ctx)
            except GatewayError:
                metrics.operations_total.labels(operation=route.name, status="failed").inc()
                raise
            except Exception as exc:
                metrics.operations_total.labels(operation=route.name, status="failed").inc()
                raise normalize_error(exc) from exc

            metrics.operations_total.labels(operation=route.name, status="success").inc()
            logger.info(route.success_message)
            return SuccessResponse(message=route.success_message, result=result)

    endpoint.__name__ = route.name
    endpoint.__doc__ = f"{route.success_message} ({'write' if route.mutating else 'read-only'})."
    return endpoint


router = APIRouter()

for _route in OPERATIONS:
    router.add_api_route(
        _route.path,
        _make_endpoint(_route),
        methods=["POST"],
        response_model=SuccessResponse,
        responses=_ERROR_RESPONSES,
        name=_route.name,
        tags=["Ledger writes" if _route.mutating else "Ledger reads"],
    )
