"""Tests for the shipping calculator and the weight-tier rate table."""

import pytest
from commerce.errors import InvalidAddress
from commerce.shipping.calculator import calculate_shipping, validate_postal_code
from commerce.shipping.rate_table import WeightTierRates


class RecordingRates(WeightTierRates):
    """Rate table that remembers what it was asked to quote."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    def quote(self, pickup_postal_code, destination_postal_code, weight_kg, cash_on_delivery):
        self.calls.append(
            {
                "pickup_postal_code": pickup_postal_code,
                "destination_postal_code": destination_postal_code,
                "weight_kg": weight_kg,
                "cash_on_delivery": cash_on_delivery,
            }
        )
        return super().quote(pickup_postal_code, destination_postal_code, weight_kg, cash_on_delivery)


@pytest.fixture()
def rates():
    return RecordingRates(unserviceable_prefixes=("79",))


class TestFreeShipping:
    def test_prepaid_above_threshold_ships_free(self, rates):
        quote = calculate_shipping("560001", 2.0, "Online", 45000.0, rates=rates)
        assert quote.charge == 0.0
        assert quote.is_free_shipping
        assert rates.calls == []

    def test_threshold_is_inclusive(self, rates):
        assert calculate_shipping("560001", 2.0, "Online", 10000.0, rates=rates).charge == 0.0

    def test_just_below_threshold_pays(self, rates):
        assert calculate_shipping("560001", 2.0, "Online", 9999.99, rates=rates).charge == 99.0

    def test_cod_never_ships_free(self, rates):
        quote = calculate_shipping("560001", 2.0, "COD", 45000.0, rates=rates)
        assert not quote.is_free_shipping
        assert quote.base_charge == 99.0
        assert quote.cod_charge == 50.0
        assert quote.charge == 149.0

    def test_threshold_from_environment(self, monkeypatch, rates):
        monkeypatch.setenv("FREE_SHIPPING_THRESHOLD", "500")
        assert calculate_shipping("560001", 2.0, "Online", 600.0, rates=rates).charge == 0.0


class TestWeightTiers:
    @pytest.mark.parametrize(
        "weight,charge",
        [(0.3, 49.0), (0.5, 49.0), (1.2, 99.0), (2.0, 99.0), (4.5, 149.0), (10.0, 249.0), (12.0, 299.0), (10.2, 274.0)],
    )
    def test_charge_by_weight(self, rates, weight, charge):
        assert calculate_shipping("560001", weight, "Online", 500.0, rates=rates).charge == charge

    def test_missing_weight_uses_flat_estimate(self, rates):
        quote = calculate_shipping("560001", None, "Online", 500.0, rates=rates)
        assert quote.weight_kg == 2.0
        assert quote.charge == 99.0

    def test_pickup_postal_code_is_sent(self, rates, monkeypatch):
        monkeypatch.setenv("PICKUP_POSTAL_CODE", "110001")
        calculate_shipping("560001", 1.0, "COD", 500.0, rates=rates)
        assert rates.calls[0]["pickup_postal_code"] == "110001"
        assert rates.calls[0]["cash_on_delivery"] is True


class TestFallback:
    def test_invalid_postal_code_falls_back(self, rates):
        quote = calculate_shipping("12345", 5.0, "Online", 500.0, rates=rates)
        assert quote.used_fallback
        assert quote.charge == 99.0
        assert rates.calls == []

    def test_unserviceable_destination_falls_back(self, rates):
        quote = calculate_shipping("791001", 5.0, "COD", 500.0, rates=rates)
        assert quote.used_fallback
        assert quote.charge == 149.0

    def test_default_charge_from_environment(self, rates, monkeypatch):
        monkeypatch.setenv("DEFAULT_SHIPPING_CHARGE", "120")
        assert calculate_shipping(None, 1.0, "Online", 500.0, rates=rates).charge == 120.0


class TestPostalCodeValidation:
    @pytest.mark.parametrize("code", ["560001", " 400001 "])
    def test_valid(self, code):
        assert validate_postal_code(code) == code.strip()

    @pytest.mark.parametrize("code", ["012345", "12345", "1234567", "56000A", "", None])
    def test_invalid(self, code):
        with pytest.raises(InvalidAddress):
            validate_postal_code(code)


class TestRateTable:
    def test_quoting_leaves_the_table_unchanged(self):
        table = WeightTierRates()
        before = dict(vars(table))
        for _ in range(50):
            table.quote("110001", "560001", 1.0, False)
        assert vars(table) == before
