"""Client for the Arcadia (Arc) utility-data API.

Docs: https://docs.arcadia.com/
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from api.errors import map_upstream_error
from lib.constants import METER_SERVICE_TYPE_ELECTRIC, STATEMENT_PAGE_LIMIT
from lib.time_util import parse_date
from lib.types import (
    IntervalReading,
    Meter,
    PropertyInput,
    Tariff,
    UtilityAccount,
    UtilityStatement,
)

BASE_URL = "https://api.arcadia.com"
API_VERSION = "2021-11-17"


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _parse_account(data: dict) -> UtilityAccount:
    return UtilityAccount(
        id=str(data["id"]),
        service_address_street_one=data.get("service_address_street_one"),
        service_address_street_two=data.get("service_address_street_two"),
        service_address_city=data.get("service_address_city"),
        service_address_state=data.get("service_address_state"),
        service_address_zip=data.get("service_address_zip"),
    )


def _parse_tariff(data: Optional[dict]) -> Optional[Tariff]:
    if not data or not data.get("main_tariff_id"):
        return None
    return Tariff(
        main_tariff_id=data["main_tariff_id"],
        property_inputs=[
            PropertyInput(key=p["id"], value=p.get("value"))
            for p in data.get("property_inputs") or []
        ],
    )


def _parse_statement(data: dict) -> UtilityStatement:
    return UtilityStatement(
        id=str(data["id"]),
        utility_account_id=str(data["utility_account_id"]),
        service_start_date=parse_date(data["service_start_date"]),
        service_end_date=parse_date(data["service_end_date"]),
        service_window_inclusive_of_end_date=bool(
            data.get("service_window_inclusive_of_end_date", False)
        ),
        tariff=_parse_tariff(data.get("tariff")),
    )


def _parse_meter(data: dict) -> Meter:
    return Meter(
        id=str(data["id"]),
        utility_account_id=(
            str(data["utility_account_id"]) if data.get("utility_account_id") is not None else None
        ),
        service_type=data.get("service_type", METER_SERVICE_TYPE_ELECTRIC),
    )


def _parse_interval(data: dict) -> IntervalReading:
    return IntervalReading(
        start_time=data["start_time"],
        end_time=data["end_time"],
        net_kwh=data.get("net_kwh"),
    )


class ArcadiaClient:
    """Read-only access to utility accounts, statements, meters and intervals.

    The access token is requested fresh for every call; nothing is cached
    between calls.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = BASE_URL,
        api_version: str = API_VERSION,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_version = api_version
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Arc-Version": api_version},
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _access_token(self) -> str:
        response = self._client.post(
            "/auth/access_token",
            json={"client_id": self.client_id, "client_secret": self.client_secret},
        )
        if not response.is_success:
            raise map_upstream_error(response.status_code, _error_body(response))
        return response.json()["access_token"]

    def _get(self, path: str, normalize_not_found: bool = False, **params) -> Any:
        """Perform an authenticated GET and return the parsed JSON body.

        Raises:
            UpstreamError: on any non-2xx HTTP status.
            UtilityAccountNotFoundError: on 403/404 when *normalize_not_found*.
        """
        token = self._access_token()
        response = self._client.get(
            path,
            params={k: v for k, v in params.items() if v is not None},
            headers={"Authorization": f"Bearer {token}"},
        )
        if not response.is_success:
            raise map_upstream_error(
                response.status_code,
                _error_body(response),
                normalize_not_found=normalize_not_found,
            )
        return response.json()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "ArcadiaClient":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accounts and statements
    # ------------------------------------------------------------------

    def get_utility_account(self, utility_account_id: str) -> UtilityAccount:
        data = self._get(f"/utility_accounts/{utility_account_id}", normalize_not_found=True)
        return _parse_account(data)

    def get_utility_statements(
        self,
        utility_account_id: str,
        limit: int = STATEMENT_PAGE_LIMIT,
    ) -> list[UtilityStatement]:
        data = self._get(
            "/plug/utility_statements",
            utility_account_id=utility_account_id,
            limit=limit,
            order="asc",
        )
        return [_parse_statement(s) for s in data.get("data", [])]

    def get_utility_statement(self, utility_statement_id: str) -> UtilityStatement:
        return _parse_statement(self._get(f"/plug/utility_statements/{utility_statement_id}"))

    # ------------------------------------------------------------------
    # Meters and interval data
    # ------------------------------------------------------------------

    def get_utility_meters(self, utility_account_id: str) -> list[Meter]:
        data = self._get(
            "/utility_meters",
            utility_account_id=utility_account_id,
            service_types=METER_SERVICE_TYPE_ELECTRIC,
        )
        return [_parse_meter(m) for m in data.get("data", [])]

    def get_interval_data(
        self,
        utility_statement_id: str,
        utility_account_id: str,
        meter_id: Optional[str] = None,
    ) -> list[IntervalReading]:
        """Fetch interval readings for a statement.

        Readings are scoped to *meter_id* when given, otherwise to the whole
        utility account.
        """
        if meter_id:
            data = self._get(
                "/plug/utility_intervals",
                utility_statement_id=utility_statement_id,
                utility_meter_id=meter_id,
            )
        else:
            data = self._get(
                "/plug/utility_intervals",
                utility_statement_id=utility_statement_id,
                utility_account_id=utility_account_id,
            )
        return [_parse_interval(i) for i in data.get("data", [])]
