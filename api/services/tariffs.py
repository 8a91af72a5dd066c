from __future__ import annotations

import logging

from api.clients.genability import GenabilityClient
from api.errors import MissingTariffError
from lib.constants import SERVICE_TYPE_ELECTRICITY, TARIFF_ID_PREFIX
from lib.types import UtilityStatement

log = logging.getLogger(__name__)


def master_tariff_id(main_tariff_id: str) -> str:
    """``gen_mtid_522`` -> ``522``."""
    if main_tariff_id.startswith(TARIFF_ID_PREFIX):
        return main_tariff_id[len(TARIFF_ID_PREFIX):]
    return main_tariff_id


def require_tariff(statement: UtilityStatement) -> None:
    if statement.tariff is None:
        raise MissingTariffError(statement.id)


class TariffRegistrar:
    """Replace a billing account's tariff with the one on a statement.

    The tariff collection is overwritten on every calculation, so the
    account only ever carries the rate plan of the statement being priced.
    Dates are the statement's raw service period; no end-date adjustment is
    applied here.
    """

    def __init__(self, billing: GenabilityClient) -> None:
        self._billing = billing

    def register(self, billing_account_id: str, statement: UtilityStatement) -> None:
        require_tariff(statement)

        tariff_id = master_tariff_id(statement.tariff.main_tariff_id)
        body = {
            "masterTariffId": tariff_id,
            "serviceType": SERVICE_TYPE_ELECTRICITY,
            "effectiveDate": statement.service_start_date.isoformat(),
            "endDate": statement.service_end_date.isoformat(),
        }
        self._billing.replace_tariffs(billing_account_id, body)
        log.info(
            "Registered tariff %s on billing account %s (%s to %s)",
            tariff_id,
            billing_account_id,
            body["effectiveDate"],
            body["endDate"],
        )
