from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from fitassess.schemas.template import Template
from fitassess.utils.visibility import visible_template_fields


@dataclass
class Progress:
    completed: int
    total: int
    missing: List[str] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        # шаблон без видимых обязательных полей — 0%, а не 100%
        if self.total <= 0:
            return 0
        return int(math.floor(self.completed / self.total * 100 + 0.5))


class IncompleteAssessmentError(ValueError):
    """Оценку нельзя зафиксировать: заполнены не все видимые обязательные поля."""

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Не заполнены обязательные поля: {', '.join(self.missing) or '-'}")


def _is_filled(value: Any) -> bool:
    # явный None тоже пусто: так его отдаёт очищенный ввод
    return value is not None and value != ""


def progress(template: Template, state: Mapping[str, Any]) -> Progress:
    """
    Считает обязательные поля, видимые сейчас (секция и само поле),
    и сколько из них заполнено. missing — id незаполненных, в порядке шаблона.
    """
    required = [f for f in visible_template_fields(template, state) if f.required]
    missing = [f.id for f in required if not _is_filled(state.get(f.id))]
    return Progress(completed=len(required) - len(missing), total=len(required), missing=missing)


def percentage(template: Template, state: Mapping[str, Any]) -> int:
    return progress(template, state).percentage


def ensure_complete(template: Template, state: Mapping[str, Any]) -> Progress:
    """Пропускает к фиксации только форму на 100%, иначе IncompleteAssessmentError."""
    p = progress(template, state)
    # по missing, а не по percentage: 399 из 400 округляются до 100
    if p.total == 0 or p.missing:
        raise IncompleteAssessmentError(p.missing)
    return p
