from __future__ import annotations

import logging

from api.clients.genability import GenabilityClient
from lib.constants import DEFAULT_CUSTOMER_CLASS
from lib.types import BillingAccount, UtilityAccount

log = logging.getLogger(__name__)


def account_body(utility_account: UtilityAccount) -> dict:
    return {
        "providerAccountId": utility_account.id,
        "accountName": f"Bill Calculation for Utility Account {utility_account.id}",
        "address": {
            "address1": utility_account.service_address_street_one,
            "address2": utility_account.service_address_street_two,
            "city": utility_account.service_address_city,
            "state": utility_account.service_address_state,
            "zip": utility_account.service_address_zip,
        },
        "properties": {
            "customerClass": {
                "keyName": "customerClass",
                "dataValue": DEFAULT_CUSTOMER_CLASS,
            },
        },
    }


class AccountSynchronizer:

    def __init__(self, billing: GenabilityClient) -> None:
        self._billing = billing

    def synchronize(self, utility_account: UtilityAccount) -> BillingAccount:
        """Upsert the billing account mirroring *utility_account*.

        The utility account id is sent as ``providerAccountId``, so calling
        this again for the same utility account updates the existing billing
        account instead of creating a second one.
        """
        billing_account = self._billing.upsert_account(account_body(utility_account))
        log.info(
            "Synchronized utility account %s -> billing account %s",
            utility_account.id,
            billing_account.account_id,
        )
        return billing_account
