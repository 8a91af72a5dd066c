"""In-memory stand-ins for the utility-data and billing providers.

Both fakes are plain ``httpx.MockTransport`` handlers, so the real clients
are exercised end to end without network access.
"""

from __future__ import annotations

import json
import re
from itertools import count

import httpx
import pytest

from api.clients.arcadia import ArcadiaClient
from api.clients.genability import GenabilityClient
from api.services.counterfactual import CounterfactualBillingService
from api.services.production import MeasuredProductionSource, ProductionProfileBuilder

ARC_URL = "https://arc.test"
GENABILITY_URL = "https://genability.test"


def _json(request: httpx.Request) -> dict:
    return json.loads(request.content) if request.content else {}


class FakeArcadia:
    def __init__(self) -> None:
        self.accounts: dict[str, dict] = {}
        self.statements: dict[str, dict] = {}
        self.meters: dict[str, list[dict]] = {}
        self.intervals: dict[tuple[str, str | None], list[dict]] = {}
        self.account_status: int | None = None
        self.requests: list[httpx.Request] = []
        self.token_requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if request.method == "POST" and path == "/auth/access_token":
            self.token_requests += 1
            return httpx.Response(200, json={"access_token": f"token-{self.token_requests}"})

        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return httpx.Response(401, json={"error": "unauthorized"})

        match = re.fullmatch(r"/utility_accounts/([^/]+)", path)
        if match:
            if self.account_status is not None:
                return httpx.Response(self.account_status, json={"error": "nope"})
            account = self.accounts.get(match.group(1))
            if account is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=account)

        if path == "/plug/utility_statements":
            account_id = params["utility_account_id"]
            rows = [s for s in self.statements.values() if s["utility_account_id"] == account_id]
            rows = rows[-int(params.get("limit", 12)):]
            return httpx.Response(200, json={"data": rows})

        match = re.fullmatch(r"/plug/utility_statements/([^/]+)", path)
        if match:
            statement = self.statements.get(match.group(1))
            if statement is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json=statement)

        if path == "/utility_meters":
            return httpx.Response(200, json={"data": self.meters.get(params["utility_account_id"], [])})

        if path == "/plug/utility_intervals":
            key = (params["utility_statement_id"], params.get("utility_meter_id"))
            return httpx.Response(200, json={"data": self.intervals.get(key, [])})

        return httpx.Response(404, json={"error": f"no route {path}"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


class FakeGenability:
    def __init__(self) -> None:
        self.accounts: dict[str, dict] = {}
        self.tariffs: dict[str, dict] = {}
        self.profiles: dict[str, dict] = {}
        self.calculations: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], int] = {}
        self._ids = count(1)

    def fail(self, method: str, path_prefix: str, status: int = 500) -> None:
        self.failures[(method, path_prefix)] = status

    def _account_profiles(self, account_id: str) -> list[dict]:
        return [p for p in self.profiles.values() if p["accountId"] == account_id]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        for (fail_method, prefix), status in self.failures.items():
            if method == fail_method and path.startswith(prefix):
                return httpx.Response(status, json={"status": "error", "message": "boom"})

        if method == "PUT" and path == "/rest/v1/accounts":
            body = _json(request)
            account = self.accounts.get(body["providerAccountId"])
            if account is None:
                account = {"accountId": f"acct-{next(self._ids)}"}
                self.accounts[body["providerAccountId"]] = account
            account.update(body)
            return httpx.Response(200, json={"status": "success", "count": 1, "results": [account]})

        match = re.fullmatch(r"/rest/v1/accounts/([^/]+)/tariffs", path)
        if method == "PUT" and match:
            self.tariffs[match.group(1)] = _json(request)
            return httpx.Response(200, json={"status": "success", "results": [_json(request)]})

        if method == "GET" and path == "/rest/v1/profiles":
            results = self._account_profiles(request.url.params["accountId"])
            return httpx.Response(200, json={"status": "success", "count": len(results), "results": results})

        match = re.fullmatch(r"/rest/v1/profiles/([^/]+)", path)
        if method == "DELETE" and match:
            self.profiles.pop(match.group(1), None)
            return httpx.Response(200, json={"status": "success"})

        if method == "PUT" and path == "/rest/v1/profiles":
            body = _json(request)
            existing = next(
                (
                    p for p in self._account_profiles(body["accountId"])
                    if p["providerProfileId"] == body["providerProfileId"]
                ),
                None,
            )
            if existing is None:
                # The first electricity profile on an account becomes the default.
                is_default = body.get("serviceTypes") == "ELECTRICITY" and not any(
                    p["serviceTypes"] == "ELECTRICITY" for p in self._account_profiles(body["accountId"])
                )
                existing = {"profileId": f"prof-{next(self._ids)}", "isDefault": is_default}
                self.profiles[existing["profileId"]] = existing
            existing.update({k: v for k, v in body.items() if k != "isDefault"})
            return httpx.Response(200, json={"status": "success", "count": 1, "results": [existing]})

        match = re.fullmatch(r"/rest/v1/accounts/([^/]+)/calculate/", path)
        if method == "POST" and match:
            body = _json(request)
            self.calculations.append(body)
            result = {
                "accountId": match.group(1),
                "detailLevel": body["detailLevel"],
                "toDateTime": body["toDateTime"],
                "totalCost": 100.0 + 10 * len(self.calculations),
            }
            return httpx.Response(200, json={"status": "success", "count": 1, "results": [result]})

        return httpx.Response(404, json={"status": "error", "message": f"no route {method} {path}"})

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def arcadia() -> FakeArcadia:
    fake = FakeArcadia()
    fake.accounts["ua_1"] = {
        "id": "ua_1",
        "service_address_street_one": "1 Main St",
        "service_address_street_two": "Apt 2",
        "service_address_city": "Denver",
        "service_address_state": "CO",
        "service_address_zip": "80202",
    }
    fake.statements["us_1"] = {
        "id": "us_1",
        "utility_account_id": "ua_1",
        "service_start_date": "2022-01-01",
        "service_end_date": "2022-01-31",
        "service_window_inclusive_of_end_date": True,
        "tariff": {
            "main_tariff_id": "gen_mtid_522",
            "property_inputs": [{"id": "territoryId", "value": "3538"}],
        },
    }
    return fake


@pytest.fixture
def genability() -> FakeGenability:
    return FakeGenability()


@pytest.fixture
def utility_client(arcadia):
    with ArcadiaClient(
        client_id="id",
        client_secret="secret",
        base_url=ARC_URL,
        transport=httpx.MockTransport(arcadia.handler),
    ) as client:
        yield client


@pytest.fixture
def billing_client(genability):
    with GenabilityClient(
        application_id="app",
        application_key="key",
        base_url=GENABILITY_URL,
        transport=httpx.MockTransport(genability.handler),
    ) as client:
        yield client


@pytest.fixture
def production_builder(billing_client) -> ProductionProfileBuilder:
    return ProductionProfileBuilder(
        billing_client,
        source=MeasuredProductionSource([0.0, 1.5, 2.5, 1.0]),
        start="2022-01-01T00:00:00-07:00",
    )


@pytest.fixture
def service(utility_client, billing_client, production_builder) -> CounterfactualBillingService:
    return CounterfactualBillingService(utility_client, billing_client, production_builder)


@pytest.fixture
def add_meters(arcadia):
    """Give utility account ua_1 electric meters, each with two readings on us_1."""

    def _add(*meter_ids: str) -> None:
        arcadia.meters["ua_1"] = [
            {"id": m, "utility_account_id": "ua_1", "service_type": "electric"} for m in meter_ids
        ]
        for m in meter_ids:
            arcadia.intervals[("us_1", m)] = [
                {"start_time": "2022-01-01T00:00:00-07:00", "end_time": "2022-01-01T01:00:00-07:00", "net_kwh": 1.25},
                {"start_time": "2022-01-01T01:00:00-07:00", "end_time": "2022-01-01T02:00:00-07:00", "net_kwh": -0.5},
            ]

    return _add
