from __future__ import annotations

import logging
from typing import Optional

from api.clients.genability import GenabilityClient
from api.errors import UpstreamError
from api.services.tariffs import require_tariff
from lib.constants import (
    DETAIL_CHARGE_TYPE,
    DETAIL_CHARGE_TYPE_AND_TOU,
    GROUP_BY_MONTH,
    PROFILE_ID_KEY,
    SERVICE_TYPE_ELECTRICITY,
)
from lib.time_util import calculation_end_date
from lib.types import UsageProfile, UtilityStatement

log = logging.getLogger(__name__)


def profile_reference(profile_id: str) -> dict:
    return {"keyName": PROFILE_ID_KEY, "dataValue": profile_id, "operator": "+"}


def tariff_property_inputs(statement: UtilityStatement) -> list[dict]:
    require_tariff(statement)
    return [
        {"keyName": p.key, "dataValue": p.value}
        for p in statement.tariff.property_inputs
    ]


class BillCalculator:
    """Price a statement's usage with and without a production profile.

    The provider marks the first electricity profile on an account as the
    default and always includes it; every other electricity profile has to
    be referenced explicitly, so the non-default ones are looked up fresh on
    each calculation.
    """

    def __init__(self, billing: GenabilityClient) -> None:
        self._billing = billing

    def existing_non_default_profiles(
        self,
        billing_account_id: str,
        service_type: str = SERVICE_TYPE_ELECTRICITY,
    ) -> list[UsageProfile]:
        return [
            p
            for p in self._billing.list_profiles(billing_account_id)
            if p.service_types == service_type and p.is_default is False
        ]

    def _calculate(
        self,
        billing_account_id: str,
        statement: UtilityStatement,
        detail_level: str,
        production_profile: Optional[UsageProfile] = None,
    ) -> dict:
        require_tariff(statement)
        property_inputs = [
            profile_reference(p.profile_id)
            for p in self.existing_non_default_profiles(billing_account_id)
        ]
        property_inputs.extend(tariff_property_inputs(statement))
        if production_profile is not None:
            property_inputs.insert(0, profile_reference(production_profile.profile_id))

        end_date = calculation_end_date(
            statement.service_end_date,
            statement.service_window_inclusive_of_end_date,
        )
        body = {
            "fromDateTime": statement.service_start_date.isoformat(),
            "toDateTime": end_date.isoformat(),
            "billingPeriod": True,
            "minimums": False,
            "groupBy": GROUP_BY_MONTH,
            "detailLevel": detail_level,
            "propertyInputs": property_inputs,
        }
        results = self._billing.calculate(billing_account_id, body)
        if not results:
            raise UpstreamError(502, "Genability returned no calculation results")

        log.info(
            "Calculated %s for statement %s (%s to %s, %d input(s))",
            detail_level,
            statement.id,
            body["fromDateTime"],
            body["toDateTime"],
            len(property_inputs),
        )
        return results[0]

    def calculate_with_baseline(self, billing_account_id: str, statement: UtilityStatement) -> dict:
        """Cost of the statement's metered usage alone."""
        return self._calculate(billing_account_id, statement, DETAIL_CHARGE_TYPE_AND_TOU)

    def calculate_with_production(
        self,
        billing_account_id: str,
        statement: UtilityStatement,
        production_profile: UsageProfile,
    ) -> dict:
        """Cost of the statement's usage with *production_profile* added back in."""
        return self._calculate(
            billing_account_id,
            statement,
            DETAIL_CHARGE_TYPE,
            production_profile=production_profile,
        )
