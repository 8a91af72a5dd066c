
TARIFF_ID_PREFIX: str = "gen_mtid_"  # e.g. gen_mtid_522 -> masterTariffId 522

SERVICE_TYPE_ELECTRICITY: str = "ELECTRICITY"
SERVICE_TYPE_SOLAR_PV: str = "SOLAR_PV"
METER_SERVICE_TYPE_ELECTRIC: str = "electric"

PRODUCTION_PROVIDER_PROFILE_ID: str = "PVWATTS_5kW"
PRODUCTION_PROFILE_NAME: str = "Solar System Actual Production"
PRODUCTION_SYSTEM_SIZE_KW: str = "5"

DEFAULT_CUSTOMER_CLASS: int = 1
READING_ENTRY_SOURCE: str = "ReadingEntry"
USAGE_QUANTITY_UNIT: str = "kwh"
PRODUCTION_QUANTITY_UNIT: str = "kWh"

STATEMENT_PAGE_LIMIT: int = 12

GROUP_BY_MONTH: str = "MONTH"
DETAIL_CHARGE_TYPE_AND_TOU: str = "CHARGE_TYPE_AND_TOU"
DETAIL_CHARGE_TYPE: str = "CHARGE_TYPE"
PROFILE_ID_KEY: str = "profileId"
