import pytest

from app.models.catalog import Good
from app.services import quantity


def _good(**overrides) -> Good:
    fields = dict(
        name="Sea bream",
        pricing_mode="by_unit",
        price_per_kg=80.0,
        available_kg=2.0,
        average_weight_kg=0.5,
        has_sizes=False,
    )
    fields.update(overrides)
    return Good(**fields)


def test_unit_ceiling_is_floor_of_stock_over_piece_weight():
    good = _good()
    assert quantity.max_orderable_units(good.available_kg, good) == 4
    assert quantity.validate_quantity(good, 4) is None


def test_over_ceiling_is_rejected_with_reason():
    good = _good()
    reason = quantity.validate_quantity(good, 5)
    assert reason is not None
    assert "Only 4 units" in reason


def test_float_noise_does_not_lose_a_unit():
    # 0.3 / 0.1 == 2.9999999999999996
    good = _good(available_kg=0.3, average_weight_kg=0.1)
    assert quantity.max_orderable_units(good.available_kg, good) == 3


def test_empty_stock_gives_zero_units_never_negative():
    good = _good(available_kg=0.0)
    assert quantity.max_orderable_units(good.available_kg, good) == 0
    assert quantity.max_orderable_units(-1.0, good) == 0


def test_by_weight_has_no_unit_ceiling():
    good = _good(pricing_mode="by_weight", average_weight_kg=None)
    assert quantity.max_orderable_units(good.available_kg, good) is None


def test_unit_debit_uses_piece_weight():
    good = _good()
    assert quantity.weight_debit(good, 3) == pytest.approx(1.5)


def test_weight_debit_is_identity_for_by_weight():
    good = _good(pricing_mode="by_weight")
    assert quantity.weight_debit(good, 1.25) == pytest.approx(1.25)


def test_size_weight_wins_over_good_average():
    good = _good(has_sizes=True, average_weight_kg=0.5)
    sizes = {"S": 0.3, "M": 0.6, "L": 1.2}
    assert quantity.average_weight_kg(good, "L", sizes) == 1.2
    assert quantity.weight_debit(good, 2, "S", sizes) == pytest.approx(0.6)
    assert quantity.max_orderable_units(good.available_kg, good, "L", sizes) == 1


def test_missing_average_falls_back_to_default():
    good = _good(average_weight_kg=None)
    assert quantity.average_weight_kg(good) == 1.0
    assert quantity.max_orderable_units(good.available_kg, good) == 2


@pytest.mark.parametrize("qty", [0.5, 1.5])
def test_by_unit_rejects_fractional_counts(qty):
    reason = quantity.validate_quantity(_good(), qty)
    assert reason is not None
    assert "whole units" in reason


def test_by_weight_minimum():
    good = _good(pricing_mode="by_weight")
    assert quantity.validate_quantity(good, 0.4) is not None
    assert quantity.validate_quantity(good, 0.5) is None


def test_size_on_unsized_good_is_ignored():
    good = _good(average_weight_kg=0.5)
    assert quantity.validate_quantity(good, 2, "M", {}) is None
    assert quantity.weight_debit(good, 2, "M", {}) == pytest.approx(1.0)


def test_sized_good_without_size_table_uses_good_average():
    good = _good(has_sizes=True, average_weight_kg=0.7, available_kg=5.0)
    assert quantity.validate_quantity(good, 2, "M", {}) is None
    assert quantity.weight_debit(good, 2, "M", {}) == pytest.approx(1.4)


def test_size_missing_from_size_table_is_rejected():
    good = _good(has_sizes=True)
    reason = quantity.validate_quantity(good, 1, "L", {"S": 0.3})
    assert reason is not None
    assert "Size L" in reason


@pytest.mark.parametrize("qty", [float("inf"), float("nan")])
@pytest.mark.parametrize("mode", ["by_weight", "by_unit"])
def test_non_finite_quantity_is_rejected(mode, qty):
    reason = quantity.validate_quantity(_good(pricing_mode=mode), qty)
    assert reason is not None
    assert "Invalid quantity" in reason


def test_units_to_weight_and_back_within_ceiling():
    good = _good(available_kg=3.7, average_weight_kg=0.45)
    ceiling = quantity.max_orderable_units(good.available_kg, good)
    for units in range(1, ceiling + 1):
        kg = quantity.weight_debit(good, units)
        assert kg <= good.available_kg + 1e-9
        assert round(kg / quantity.average_weight_kg(good)) == units


def test_line_total_uses_cut_surcharge():
    good = _good(pricing_mode="by_weight", price_per_kg=80.0)
    price = quantity.unit_price(good, 5.5)
    assert price == 85.5
    assert quantity.line_total(price, 1.2) == pytest.approx(102.6)
