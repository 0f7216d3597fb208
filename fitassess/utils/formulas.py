from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Mapping, Optional, Union


class UnknownFormulaError(ValueError):
    """Формула не входит в закрытый набор поддерживаемых."""
    pass


class FormulaKind(str, Enum):
    BMI = "weight/(height/100)^2"
    WAIST_HIP_RATIO = "avg(waist)/avg(hips)"
    MAX_HEART_RATE = "220-age"


_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _normalize(text: str) -> str:
    # "avg(waist) / avg(hips)" и "avg(waist)/avg(hips)" — одна и та же формула
    return "".join(text.split())


def resolve_formula(formula: Union[str, FormulaKind]) -> FormulaKind:
    """Сопоставляет текст формулы из шаблона с FormulaKind. Бросает UnknownFormulaError."""
    if isinstance(formula, FormulaKind):
        return formula
    if not isinstance(formula, str):
        raise UnknownFormulaError(f"Формула должна быть строкой: {formula!r}")
    try:
        return FormulaKind(_normalize(formula))
    except ValueError as e:
        known = ", ".join(k.value for k in FormulaKind)
        raise UnknownFormulaError(f"Неизвестная формула {formula!r} (известные: {known})") from e


def parse_number(value: Any) -> Optional[float]:
    """
    Разбирает число так же, как parseFloat в браузере:
    берёт числовой префикс строки ("70kg" -> 70.0), числа — как есть.
    None, bool и всё нечисловое -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        m = _NUMBER_PREFIX.match(value)
        if not m:
            return None
        number = float(m.group(1))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _round_half_up(value: float, digits: int = 0) -> float:
    # Math.round: .5 всегда вверх, в отличие от банковского round()
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _bmi(state: Mapping[str, Any]) -> Optional[float]:
    weight = parse_number(state.get("weight"))
    height = parse_number(state.get("height"))
    if not weight or not height:
        return None
    return _round_half_up(weight / (height / 100) ** 2, 1)


def _waist_hip_ratio(state: Mapping[str, Any]) -> Optional[float]:
    waist = ((parse_number(state.get("waist_1")) or 0) + (parse_number(state.get("waist_2")) or 0)) / 2
    hips = ((parse_number(state.get("hips_1")) or 0) + (parse_number(state.get("hips_2")) or 0)) / 2
    if not waist or not hips:
        return None
    return _round_half_up(waist / hips, 2)


def _max_heart_rate(state: Mapping[str, Any]) -> Optional[Union[int, float]]:
    age = parse_number(state.get("age"))
    if not age:
        return None
    bpm = 220 - age
    # целый возраст даёт целый пульс: 190, а не 190.0 в сохранённом блобе
    return int(bpm) if bpm.is_integer() else bpm


_DISPATCH = {
    FormulaKind.BMI: _bmi,
    FormulaKind.WAIST_HIP_RATIO: _waist_hip_ratio,
    FormulaKind.MAX_HEART_RATE: _max_heart_rate,
}


def evaluate(formula: Union[str, FormulaKind], state: Mapping[str, Any]) -> Optional[Union[int, float]]:
    """
    Вычисляет производное значение по формуле.
    Никогда не бросает: нехватка данных, мусор во вводе или
    неизвестная формула дают None ("пока не вычисляется").
    """
    try:
        kind = resolve_formula(formula)
    except UnknownFormulaError:
        return None
    try:
        return _DISPATCH[kind](state)
    except (ArithmeticError, TypeError, ValueError):
        return None
