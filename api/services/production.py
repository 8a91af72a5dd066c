"""Solar production profile for counterfactual calculations.

The production profile is the generation side of the comparison: it is
added on top of the statement's metered (net) usage to price what the bill
would have been without the solar system.

Readings come from a :class:`ProductionDataSource`.  Two are provided:

* :class:`BaselineFileSource` reads a year of hourly values from a file in
  the billing provider's ``baselineMeasures`` shape.  The bundled
  ``mock-8760-solar-profile.json`` is a stand-in for a 5 kW PV system and
  should be replaced with measured data in production.
* :class:`MeasuredProductionSource` wraps hourly generation values supplied
  by the caller, typically only for the statement period being priced.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Protocol, Union

from api.clients.genability import GenabilityClient
from lib.constants import (
    PRODUCTION_PROFILE_NAME,
    PRODUCTION_PROVIDER_PROFILE_ID,
    PRODUCTION_QUANTITY_UNIT,
    PRODUCTION_SYSTEM_SIZE_KW,
    READING_ENTRY_SOURCE,
    SERVICE_TYPE_SOLAR_PV,
)
from lib.time_util import hourly_windows, parse_timestamp
from lib.types import ReadingData, UsageProfile

log = logging.getLogger(__name__)


class ProductionDataSource(Protocol):
    def readings(self, start: datetime) -> Iterator[ReadingData]:
        """Yield hourly production readings starting at *start*."""
        ...


def tile_hourly(start: datetime, values: Iterable[float]) -> Iterator[ReadingData]:
    """Lay *values* end to end on an hourly grid beginning at *start*.

    Each reading ends exactly where the next begins, in the order the values
    are given.
    """
    for (from_dt, to_dt), value in zip(hourly_windows(start), values):
        yield ReadingData(
            from_date_time=from_dt.isoformat(),
            to_date_time=to_dt.isoformat(),
            quantity_value=str(value),
            quantity_unit=PRODUCTION_QUANTITY_UNIT,
        )


class BaselineFileSource:
    """Hourly values from ``results[0].baselineMeasures[*].v`` in a JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def values(self) -> list[float]:
        with self.path.open(encoding="utf-8") as handle:
            data = json.load(handle)
        try:
            measures = data["results"][0]["baselineMeasures"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"{self.path} has no results[0].baselineMeasures") from exc
        return [m["v"] for m in measures]

    def readings(self, start: datetime) -> Iterator[ReadingData]:
        return tile_hourly(start, self.values())


class MeasuredProductionSource:
    """Hourly generation values measured by the customer's system."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values = list(values)

    def readings(self, start: datetime) -> Iterator[ReadingData]:
        return tile_hourly(start, self._values)


class ProductionProfileBuilder:

    def __init__(
        self,
        billing: GenabilityClient,
        source: ProductionDataSource,
        start: Union[str, datetime],
    ) -> None:
        self._billing = billing
        self._source = source
        self.start = parse_timestamp(start)

    def profile_body(self, billing_account_id: str) -> dict:
        return {
            "accountId": billing_account_id,
            "providerProfileId": PRODUCTION_PROVIDER_PROFILE_ID,
            "profileName": PRODUCTION_PROFILE_NAME,
            "serviceTypes": SERVICE_TYPE_SOLAR_PV,
            "sourceId": READING_ENTRY_SOURCE,
            "properties": {
                "systemSize": {
                    "keyName": "systemSize",
                    "dataValue": PRODUCTION_SYSTEM_SIZE_KW,
                },
            },
            "readingData": [r.to_payload() for r in self._source.readings(self.start)],
        }

    def upsert(self, billing_account_id: str) -> UsageProfile:
        """Create or update the production profile on *billing_account_id*."""
        body = self.profile_body(billing_account_id)
        profile = self._billing.upsert_profile(body)
        log.info(
            "Upserted production profile %s (%d reading(s) from %s)",
            profile.profile_id,
            len(body["readingData"]),
            self.start.isoformat(),
        )
        return profile
