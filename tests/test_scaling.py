import pytest

from weekly_menu.core.scaling import (
    format_number, parse_amount, scale, scale_ingredients, serving_factor,
)
from weekly_menu.db.models import Ingredient


@pytest.mark.parametrize("amount, factor, expected", [
    ("2", 3, "6"),
    ("1.5", 2, "3"),
    ("0.33", 2, "0.7"),
    ("300 г", 0.5, "150 г"),
    ("2.5 шт", 2, "5 шт"),
    ("1", 1 / 3, "0.3"),
    ("0.25", 1, "0.3"),
])
def test_scale_leading_numeral(amount, factor, expected):
    assert scale(amount, factor) == expected


@pytest.mark.parametrize("amount", ["по вкусу", "для жарки", "2 ст.л. для жарки", "salt to taste", "for frying"])
@pytest.mark.parametrize("factor", [0.5, 1, 5])
def test_scale_keeps_qualifier_amounts(amount, factor):
    assert scale(amount, factor) == amount


@pytest.mark.parametrize("amount", ["", "щепотка", "a pinch", " 2"])
def test_scale_without_leading_numeral_is_passthrough(amount):
    assert scale(amount, 4) == amount


def test_scale_by_one_preserves_value():
    for amount in ["2", "2.0", "0.5", "12.5", "3 шт"]:
        assert parse_amount(scale(amount, 1)) == parse_amount(amount)
    assert scale("2.0", 1) == "2"


def test_scale_custom_qualifiers():
    assert scale("2 штуки на глаз", 2, qualifiers=("на глаз",)) == "2 штуки на глаз"
    assert scale("по вкусу 2", 2, qualifiers=("на глаз",)) == "по вкусу 2"


def test_scale_qualifiers_from_env(monkeypatch):
    monkeypatch.setenv("UNSCALED_QUALIFIERS", "at will, optional")
    assert scale("1 optional", 3) == "1 optional"
    assert scale("1 по вкусу", 3) == "3 по вкусу"


def test_serving_factor():
    assert serving_factor(4, 2) == 2
    assert serving_factor(1, 4) == 0.25


def test_serving_factor_zero_base():
    with pytest.raises(ZeroDivisionError):
        serving_factor(4, 0)


def test_serving_factor_negative():
    with pytest.raises(ValueError):
        serving_factor(4, -2)


def test_scale_ingredients_returns_new_list():
    original = [
        Ingredient("лук", "2", "шт"),
        Ingredient("соль", "по вкусу", ""),
        Ingredient("мука", "", "г"),
    ]
    scaled = scale_ingredients(original, 6, 4)
    assert [i.amount for i in scaled] == ["3", "по вкусу", ""]
    assert [i.unit for i in scaled] == ["шт", "", "г"]
    assert original[0].amount == "2"


def test_format_number():
    assert format_number(4.0) == "4"
    assert format_number(0.5) == "0.5"
    assert format_number(0.1 + 0.2) == "0.30000000000000004"


@pytest.mark.parametrize("value, expected", [
    (1e-7, "1e-7"),
    (1.5e-7, "1.5e-7"),
    (0.000001, "0.000001"),
    (0.00001, "0.00001"),
    (1e16, "10000000000000000"),
    (1e20, "100000000000000000000"),
    (1e21, "1e+21"),
    (1.25e22, "1.25e+22"),
    (-2.5, "-2.5"),
    (0.0, "0"),
    (float("inf"), "Infinity"),
])
def test_format_number_matches_js_layout(value, expected):
    assert format_number(value) == expected


@pytest.mark.parametrize("amount, expected", [
    ("2", 2.0), ("2.5 кг", 2.5), (" .5", 0.5), ("-1", -1.0), ("по вкусу", None), ("", None), (None, None),
])
def test_parse_amount(amount, expected):
    assert parse_amount(amount) == expected
