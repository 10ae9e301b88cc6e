"""Tests for the shipping rate model and carrier tables."""

from datetime import date

import pytest
from orderflow.shipping.carriers import CARRIERS, find_service, stage_for_elapsed
from orderflow.shipping.rates import (
    add_business_days,
    base_rate,
    billable_weight,
    jittered,
    validate_destination,
    validate_package,
)


SMALL_BOX = {"weight": 2, "dimensions": {"length": 10, "width": 8, "height": 4}}
CALIFORNIA = {"city": "San Francisco", "state": "CA", "postal_code": "94105", "country": "US"}
NEW_YORK = {"city": "New York", "state": "NY", "postal_code": "10001", "country": "US"}
ONTARIO = {"city": "Toronto", "state": "ON", "postal_code": "M5V 2T6", "country": "CA"}


class _Roll:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestCarriers:
    def test_service_lookup(self):
        service = find_service("ups", "ups-ground")
        assert service.carrier == "UPS"
        assert service.base_rate == 8.90

    def test_unknown_service(self):
        assert find_service("UPS", "usps-ground") is None
        assert find_service("DHL", "dhl-express") is None

    def test_tracking_prefixes(self):
        assert CARRIERS["UPS"].tracking_prefix == "1Z"
        assert CARRIERS["FEDEX"].tracking_prefix == "1234"
        assert CARRIERS["USPS"].tracking_prefix == "9400"


class TestBaseRate:
    def test_billable_weight_uses_actual_weight_when_heavier(self):
        assert billable_weight(SMALL_BOX) == 2

    def test_billable_weight_uses_volume_when_larger(self):
        package = {"weight": 1, "dimensions": {"length": 20, "width": 20, "height": 20}}
        assert billable_weight(package) == pytest.approx(8000 / 166)

    def test_same_state_rate(self):
        service = find_service("USPS", "usps-ground")
        assert base_rate(SMALL_BOX, CALIFORNIA, service) == pytest.approx(6.99 + 2.50)

    def test_other_state_multiplier(self):
        service = find_service("USPS", "usps-ground")
        assert base_rate(SMALL_BOX, NEW_YORK, service) == pytest.approx((6.99 + 2.50) * 1.2)

    def test_international_multiplier(self):
        service = find_service("USPS", "usps-ground")
        assert base_rate(SMALL_BOX, ONTARIO, service) == pytest.approx((6.99 + 2.50) * 2.5)

    def test_oversize_surcharge(self):
        package = {"weight": 40, "dimensions": {"length": 50, "width": 10, "height": 10}}
        service = find_service("UPS", "ups-ground")
        assert base_rate(package, CALIFORNIA, service) == pytest.approx(8.90 + 39 * 2.50 + 15.00)

    def test_one_pound_has_no_weight_charge(self):
        package = {"weight": 1, "dimensions": {"length": 5, "width": 5, "height": 5}}
        service = find_service("FEDEX", "fedex-ground")
        assert base_rate(package, CALIFORNIA, service) == pytest.approx(9.49)


class TestJitter:
    def test_neutral_roll(self):
        assert jittered(10.00, _Roll(0.5)) == 10.00

    def test_jitter_band(self):
        assert jittered(10.00, _Roll(0.0)) == 9.50
        assert jittered(10.00, _Roll(1.0)) == 10.50


class TestValidation:
    def test_valid_request(self):
        assert validate_package(SMALL_BOX) is None
        assert validate_destination(CALIFORNIA) is None

    def test_missing_weight(self):
        failure = validate_package({"dimensions": SMALL_BOX["dimensions"]})
        assert failure.code == "invalid_shipping_request"

    def test_missing_dimension(self):
        assert validate_package({"weight": 2, "dimensions": {"length": 10, "width": 8}}) is not None

    def test_missing_destination_field(self):
        failure = validate_destination({"city": "Austin", "state": "TX", "country": "US"})
        assert "postal_code" in failure.message


class TestDeliveryEstimates:
    def test_weekday_landing(self):
        # Monday + 3 days is Thursday
        assert add_business_days(date(2026, 3, 2), 3) == date(2026, 3, 5)

    def test_weekend_landing_moves_to_monday(self):
        # Thursday + 2 days is Saturday
        assert add_business_days(date(2026, 3, 5), 2) == date(2026, 3, 9)


class TestTrackingStages:
    @pytest.mark.parametrize(
        "hours,stage",
        [(0, 0), (2, 0), (2.5, 1), (6, 1), (20, 2), (24, 2), (30, 3), (48, 3), (60, 4), (72, 4), (80, 5)],
    )
    def test_stage_for_elapsed(self, hours, stage):
        assert stage_for_elapsed(hours) == stage
