"""Tests for api.clients.arcadia.ArcadiaClient against a fake provider."""

from datetime import date

import pytest

from api.errors import UpstreamError, UtilityAccountNotFoundError


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def test_get_utility_account(utility_client):
    account = utility_client.get_utility_account("ua_1")
    assert account.id == "ua_1"
    assert account.service_address_city == "Denver"
    assert account.service_address_zip == "80202"


def test_missing_account_normalized(utility_client):
    with pytest.raises(UtilityAccountNotFoundError):
        utility_client.get_utility_account("ua_missing")


def test_forbidden_account_normalized(utility_client, arcadia):
    arcadia.account_status = 403
    with pytest.raises(UtilityAccountNotFoundError) as info:
        utility_client.get_utility_account("ua_1")
    assert info.value.status_code == 400


def test_account_server_error_propagates(utility_client, arcadia):
    arcadia.account_status = 500
    with pytest.raises(UpstreamError) as info:
        utility_client.get_utility_account("ua_1")
    assert info.value.status_code == 500
    assert info.value.body == {"error": "nope"}


def test_token_fetched_for_every_call(utility_client, arcadia):
    utility_client.get_utility_account("ua_1")
    utility_client.get_utility_account("ua_1")
    assert arcadia.token_requests == 2


def test_arc_version_header_sent(utility_client, arcadia):
    utility_client.get_utility_account("ua_1")
    assert all(r.headers["Arc-Version"] == "2021-11-17" for r in arcadia.requests)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def test_get_utility_statement(utility_client):
    statement = utility_client.get_utility_statement("us_1")
    assert statement.utility_account_id == "ua_1"
    assert statement.service_start_date == date(2022, 1, 1)
    assert statement.service_end_date == date(2022, 1, 31)
    assert statement.service_window_inclusive_of_end_date is True
    assert statement.tariff.main_tariff_id == "gen_mtid_522"
    assert statement.tariff.property_inputs[0].key == "territoryId"
    assert statement.tariff.property_inputs[0].value == "3538"


def test_statement_without_tariff(utility_client, arcadia):
    arcadia.statements["us_1"]["tariff"] = None
    assert utility_client.get_utility_statement("us_1").tariff is None


def test_missing_statement_is_upstream_error(utility_client):
    with pytest.raises(UpstreamError) as info:
        utility_client.get_utility_statement("us_missing")
    assert info.value.status_code == 404


def test_get_utility_statements_query(utility_client, arcadia):
    statements = utility_client.get_utility_statements("ua_1")
    assert [s.id for s in statements] == ["us_1"]
    params = arcadia.requests[-1].url.params
    assert params["limit"] == "12"
    assert params["order"] == "asc"


# ---------------------------------------------------------------------------
# Meters and intervals
# ---------------------------------------------------------------------------


def test_meters_filtered_to_electric(utility_client, arcadia, add_meters):
    add_meters("m_1", "m_2")
    meters = utility_client.get_utility_meters("ua_1")
    assert [m.id for m in meters] == ["m_1", "m_2"]
    assert arcadia.requests[-1].url.params["service_types"] == "electric"


def test_interval_data_scoped_to_meter(utility_client, arcadia, add_meters):
    add_meters("m_1")
    readings = utility_client.get_interval_data("us_1", "ua_1", "m_1")
    assert len(readings) == 2
    params = arcadia.requests[-1].url.params
    assert params["utility_meter_id"] == "m_1"
    assert "utility_account_id" not in params


def test_interval_data_scoped_to_account(utility_client, arcadia):
    arcadia.intervals[("us_1", None)] = [
        {"start_time": "2022-01-01T00:00:00Z", "end_time": "2022-01-01T00:15:00Z", "net_kwh": 0.3},
    ]
    readings = utility_client.get_interval_data("us_1", "ua_1")
    assert readings[0].start_time == "2022-01-01T00:00:00Z"
    assert readings[0].net_kwh == 0.3
    params = arcadia.requests[-1].url.params
    assert params["utility_account_id"] == "ua_1"
    assert "utility_meter_id" not in params
