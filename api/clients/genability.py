"""Client for the Genability (Switch Solar) account and calculation API.

Docs: https://www.switchsolar.io/api-reference/account-api/
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from api.errors import UpstreamError, map_upstream_error
from lib.types import BillingAccount, UsageProfile

BASE_URL = "https://api.genability.com"


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _parse_profile(data: dict) -> UsageProfile:
    return UsageProfile(
        profile_id=str(data["profileId"]),
        provider_profile_id=data.get("providerProfileId"),
        service_types=data.get("serviceTypes"),
        is_default=bool(data.get("isDefault", False)),
    )


def _first_result(data: dict, what: str) -> dict:
    results = data.get("results") or []
    if not results:
        raise UpstreamError(502, f"Genability returned no {what}")
    return results[0]


class GenabilityClient:
    """CRUD for accounts, tariffs and profiles, plus on-demand calculations.

    Authentication is HTTP Basic with the application id/key pair given at
    construction time.
    """

    def __init__(
        self,
        application_id: str,
        application_key: str,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            auth=(application_id, application_key),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the parsed JSON body (``None`` if empty).

        Raises:
            UpstreamError: on any non-2xx HTTP status.
        """
        response = self._client.request(method, path, **kwargs)
        if not response.is_success:
            raise map_upstream_error(response.status_code, _error_body(response))
        if not response.content:
            return None
        return response.json()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "GenabilityClient":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accounts and tariffs
    # ------------------------------------------------------------------

    def upsert_account(self, body: dict) -> BillingAccount:
        """PUT an account; ``providerAccountId`` is the upsert key."""
        data = _first_result(self._request("PUT", "/rest/v1/accounts", json=body), "account")
        return BillingAccount(
            account_id=str(data["accountId"]),
            provider_account_id=data.get("providerAccountId"),
            account_name=data.get("accountName"),
        )

    def replace_tariffs(self, account_id: str, body: dict) -> Any:
        return self._request("PUT", f"/rest/v1/accounts/{account_id}/tariffs", json=body)

    # ------------------------------------------------------------------
    # Usage profiles
    # ------------------------------------------------------------------

    def list_profiles(self, account_id: str) -> list[UsageProfile]:
        data = self._request("GET", "/rest/v1/profiles", params={"accountId": account_id})
        return [_parse_profile(p) for p in (data or {}).get("results") or []]

    def delete_profile(self, profile_id: str) -> None:
        self._request("DELETE", f"/rest/v1/profiles/{profile_id}")

    def upsert_profile(self, body: dict) -> UsageProfile:
        """PUT a profile; ``providerProfileId`` is the upsert key."""
        return _parse_profile(
            _first_result(self._request("PUT", "/rest/v1/profiles", json=body), "profile")
        )

    # ------------------------------------------------------------------
    # Calculations
    # ------------------------------------------------------------------

    def calculate(self, account_id: str, body: dict) -> list[dict]:
        """Run a calculation on the billing account that holds the tariff and profiles."""
        data = self._request(
            "POST",
            f"/rest/v1/accounts/{account_id}/calculate/",
            json=body,
        )
        return (data or {}).get("results") or []
