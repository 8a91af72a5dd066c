from __future__ import annotations

import logging
from typing import Optional

from api.clients.arcadia import ArcadiaClient
from api.clients.genability import GenabilityClient
from lib.constants import (
    READING_ENTRY_SOURCE,
    SERVICE_TYPE_ELECTRICITY,
    USAGE_QUANTITY_UNIT,
)
from lib.types import IntervalReading, Meter, ReadingData, UsageProfile, UtilityStatement

log = logging.getLogger(__name__)


def provider_profile_id(utility_account_id: str, meter_id: Optional[str]) -> str:
    """Stable upsert key for a usage profile.

    One key per (utility account, meter) pair, with a fixed suffix standing
    in for the meter when readings are account-level.
    """
    if meter_id:
        return f"ELECTRICITY_USAGE_UA_{utility_account_id}_METER_{meter_id}"
    return f"ELECTRICITY_USAGE_UA_{utility_account_id}_WITHOUT_METER"


def to_reading_data(interval: IntervalReading) -> ReadingData:
    return ReadingData(
        from_date_time=interval.start_time,
        to_date_time=interval.end_time,
        quantity_value=interval.net_kwh,
        quantity_unit=USAGE_QUANTITY_UNIT,
    )


def usage_profile_body(
    billing_account_id: str,
    statement: UtilityStatement,
    meter_id: Optional[str],
    intervals: list[IntervalReading],
) -> dict:
    account_id = statement.utility_account_id
    if meter_id:
        name = f"Interval Data for meter {meter_id}"
        description = f"Usage Profile using Interval Data for Utility Account {account_id} - meter: {meter_id}"
    else:
        name = f"Interval Data for utility_account {account_id}"
        description = f"Usage Profile using Interval Data for Utility Account {account_id}"

    return {
        "accountId": billing_account_id,
        "providerProfileId": provider_profile_id(account_id, meter_id),
        "profileName": name,
        "description": description,
        "isDefault": False,
        "serviceTypes": SERVICE_TYPE_ELECTRICITY,
        "sourceId": READING_ENTRY_SOURCE,
        "readingData": [to_reading_data(i).to_payload() for i in intervals],
    }


class UsageProfileBuilder:
    """Turn a statement's interval data into billing-provider usage profiles."""

    def __init__(self, utility: ArcadiaClient, billing: GenabilityClient) -> None:
        self._utility = utility
        self._billing = billing

    def purge_profiles(self, billing_account_id: str) -> int:
        """Delete every profile on the billing account, one at a time.

        Returns the number of profiles deleted (0 is a no-op).
        """
        profiles = self._billing.list_profiles(billing_account_id)
        for profile in profiles:
            self._billing.delete_profile(profile.profile_id)
        log.info("Deleted %d profile(s) from billing account %s", len(profiles), billing_account_id)
        return len(profiles)

    def build_profile(
        self,
        billing_account_id: str,
        statement: UtilityStatement,
        meter_id: Optional[str] = None,
    ) -> UsageProfile:
        intervals = self._utility.get_interval_data(
            statement.id, statement.utility_account_id, meter_id
        )
        profile = self._billing.upsert_profile(
            usage_profile_body(billing_account_id, statement, meter_id, intervals)
        )
        log.info(
            "Upserted usage profile %s with %d reading(s)",
            profile.provider_profile_id or profile.profile_id,
            len(intervals),
        )
        return profile

    def build(self, billing_account_id: str, statement: UtilityStatement) -> list[Meter]:
        """Create one usage profile per electric meter on the statement's account.

        Accounts without meter-level data get a single account-level profile
        instead, in which case the returned meter list is empty.
        """
        meters = self._utility.get_utility_meters(statement.utility_account_id)
        if meters:
            for meter in meters:
                self.build_profile(billing_account_id, statement, meter.id)
        else:
            log.info(
                "No meters for utility account %s; using account-level interval data.",
                statement.utility_account_id,
            )
            self.build_profile(billing_account_id, statement, None)
        return meters
