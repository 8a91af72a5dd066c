import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.deps import get_service
from api.errors import CounterfactualError
from api.services.counterfactual import CounterfactualBillingService, PipelineStepError
from lib.types import Meter, UtilityStatement

log = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class CreateBillingAccountRequest(BaseModel):
    utility_account_id: str


class BillingAccountResponse(BaseModel):
    account_id: str
    provider_account_id: Optional[str]
    account_name: Optional[str]


class CreateBillingAccountResponse(BaseModel):
    billing_account: BillingAccountResponse


class PropertyInputResponse(BaseModel):
    key: str
    value: Any


class TariffResponse(BaseModel):
    main_tariff_id: str
    property_inputs: list[PropertyInputResponse]


class UtilityStatementResponse(BaseModel):
    id: str
    utility_account_id: str
    service_start_date: date
    service_end_date: date
    service_window_inclusive_of_end_date: bool
    tariff: Optional[TariffResponse]


class UtilityStatementsResponse(BaseModel):
    utility_statements: list[UtilityStatementResponse]


class CounterfactualBillRequest(BaseModel):
    utility_statement_id: str
    billing_account_id: Optional[str] = None


class MeterResponse(BaseModel):
    id: str
    utility_account_id: Optional[str]
    service_type: str


class CounterfactualBillResponse(BaseModel):
    current_cost: dict
    current_cost_without_solar: dict
    meters_used_in_calculation: list[MeterResponse]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _statement_response(s: UtilityStatement) -> UtilityStatementResponse:
    return UtilityStatementResponse(
        id=s.id,
        utility_account_id=s.utility_account_id,
        service_start_date=s.service_start_date,
        service_end_date=s.service_end_date,
        service_window_inclusive_of_end_date=s.service_window_inclusive_of_end_date,
        tariff=TariffResponse(
            main_tariff_id=s.tariff.main_tariff_id,
            property_inputs=[
                PropertyInputResponse(key=p.key, value=p.value) for p in s.tariff.property_inputs
            ],
        ) if s.tariff else None,
    )


def _meter_response(m: Meter) -> MeterResponse:
    return MeterResponse(id=m.id, utility_account_id=m.utility_account_id, service_type=m.service_type)


def _http_error(exc: CounterfactualError, **extra) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"error": exc.detail, **extra})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/billing_accounts", response_model=CreateBillingAccountResponse)
def create_billing_account(
    body: CreateBillingAccountRequest,
    service: CounterfactualBillingService = Depends(get_service),
):
    """Create (or update) the billing account for a utility account."""
    try:
        account = service.create_billing_account(body.utility_account_id)
    except CounterfactualError as exc:
        raise _http_error(exc) from exc

    return CreateBillingAccountResponse(
        billing_account=BillingAccountResponse(
            account_id=account.account_id,
            provider_account_id=account.provider_account_id,
            account_name=account.account_name,
        )
    )


@router.get("/utility_statements", response_model=UtilityStatementsResponse)
def list_utility_statements(
    utility_account_id: str = Query(...),
    service: CounterfactualBillingService = Depends(get_service),
):
    """Return the most recent statements for a utility account, oldest first."""
    try:
        statements = service.list_statements(utility_account_id)
    except CounterfactualError as exc:
        raise _http_error(exc) from exc

    return UtilityStatementsResponse(
        utility_statements=[_statement_response(s) for s in statements]
    )


@router.post("/counterfactual_bills", response_model=CounterfactualBillResponse)
def calculate_counterfactual_bill(
    body: CounterfactualBillRequest,
    service: CounterfactualBillingService = Depends(get_service),
):
    """Price a statement as billed and again with solar production added back.

    ``current_cost`` is the statement's metered usage; ``current_cost_without_solar``
    adds the production profile on top of it.  When ``billing_account_id``
    is omitted the billing account is synchronized from the statement's
    utility account first.
    """
    try:
        result = service.calculate(body.utility_statement_id, body.billing_account_id)
    except PipelineStepError as exc:
        extra = {"step": exc.step, "profiles_incomplete": exc.profiles_incomplete}
        if isinstance(exc.cause, CounterfactualError):
            raise _http_error(exc.cause, **extra) from exc
        log.exception("Counterfactual calculation failed at %s", exc.step)
        raise HTTPException(
            status_code=500, detail={"error": "Internal server error", **extra}
        ) from exc

    return CounterfactualBillResponse(
        current_cost=result.current_cost,
        current_cost_without_solar=result.current_cost_without_solar,
        meters_used_in_calculation=[_meter_response(m) for m in result.meters_used_in_calculation],
    )
