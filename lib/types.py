from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional


@dataclass
class UtilityAccount:
    id: str
    service_address_street_one: Optional[str] = None
    service_address_street_two: Optional[str] = None
    service_address_city: Optional[str] = None
    service_address_state: Optional[str] = None
    service_address_zip: Optional[str] = None


@dataclass
class PropertyInput:
    key: str
    value: Any


@dataclass
class Tariff:
    main_tariff_id: str
    property_inputs: list[PropertyInput] = field(default_factory=list)


@dataclass
class UtilityStatement:
    id: str
    utility_account_id: str
    service_start_date: date
    service_end_date: date
    service_window_inclusive_of_end_date: bool = False
    tariff: Optional[Tariff] = None


@dataclass
class Meter:
    id: str
    utility_account_id: Optional[str] = None
    service_type: str = "electric"


@dataclass
class IntervalReading:
    start_time: str
    end_time: str
    net_kwh: Any


@dataclass
class ReadingData:
    from_date_time: str
    to_date_time: str
    quantity_value: Any
    quantity_unit: str

    def to_payload(self) -> dict:
        return {
            "fromDateTime": self.from_date_time,
            "toDateTime": self.to_date_time,
            "quantityUnit": self.quantity_unit,
            "quantityValue": self.quantity_value,
        }


@dataclass
class UsageProfile:
    profile_id: str
    provider_profile_id: Optional[str] = None
    service_types: Optional[str] = None
    is_default: bool = False


@dataclass
class BillingAccount:
    account_id: str
    provider_account_id: Optional[str] = None
    account_name: Optional[str] = None


@dataclass
class CounterfactualResult:
    current_cost: dict
    current_cost_without_solar: dict
    meters_used_in_calculation: list[Meter]
