import pytest

from fitassess.utils.formulas import (
    FormulaKind,
    UnknownFormulaError,
    evaluate,
    parse_number,
    resolve_formula,
)


def test_bmi_rounds_to_one_decimal():
    assert evaluate("weight / (height/100)^2", {"weight": 70, "height": 175}) == 22.9


def test_bmi_accepts_numeric_strings():
    assert evaluate("weight / (height/100)^2", {"weight": "80", "height": "180"}) == 24.7


def test_waist_hip_ratio():
    state = {"waist_1": 80, "waist_2": 82, "hips_1": 100, "hips_2": 100}
    assert evaluate("avg(waist)/avg(hips)", state) == 0.81
    assert evaluate("avg(waist) / avg(hips)", state) == 0.81


def test_waist_hip_ratio_missing_trial_counts_as_zero():
    # (80 + 0) / 2 = 40; (100 + 100) / 2 = 100
    assert evaluate("avg(waist) / avg(hips)", {"waist_1": 80, "hips_1": 100, "hips_2": 100}) == 0.4


def test_waist_hip_ratio_without_hips_is_none():
    assert evaluate("avg(waist) / avg(hips)", {"waist_1": 80, "waist_2": 82}) is None


def test_max_heart_rate():
    assert evaluate("220 - age", {"age": 30}) == 190
    assert isinstance(evaluate("220 - age", {"age": "30"}), int)
    assert evaluate("220 - age", {"age": 30.5}) == 189.5
    assert evaluate(FormulaKind.MAX_HEART_RATE, {"age": "40"}) == 180


@pytest.mark.parametrize("state", [{}, {"age": ""}, {"age": "abc"}, {"age": 0}, {"age": None}, {"age": True}])
def test_missing_or_invalid_input_returns_none(state):
    assert evaluate("220 - age", state) is None


def test_bmi_zero_height_is_none_not_error():
    assert evaluate("weight / (height/100)^2", {"weight": 70, "height": 0}) is None


def test_unknown_formula_evaluates_to_none():
    assert evaluate("weight * 2", {"weight": 70}) is None


def test_resolve_formula_is_whitespace_insensitive():
    assert resolve_formula("weight/(height / 100)^2") is FormulaKind.BMI
    assert resolve_formula(" 220-age ") is FormulaKind.MAX_HEART_RATE


def test_resolve_unknown_formula_raises():
    with pytest.raises(UnknownFormulaError):
        resolve_formula("sqrt(weight)")


def test_parse_number_behaves_like_parse_float():
    assert parse_number("70kg") == 70.0
    assert parse_number(" 1.5e2") == 150.0
    assert parse_number(".5") == 0.5
    assert parse_number("kg70") is None
    assert parse_number(False) is None
    assert parse_number([70]) is None


def test_rounding_is_half_up():
    # 0.125 -> 0.13, а не банковское 0.12
    assert evaluate("avg(waist) / avg(hips)", {"waist_1": 12.5, "waist_2": 12.5, "hips_1": 100, "hips_2": 100}) == 0.13
