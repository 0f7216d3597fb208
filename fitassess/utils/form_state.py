from __future__ import annotations

from typing import Any, Dict, Mapping, NamedTuple, Optional

from fitassess.schemas.template import Template
from fitassess.utils.formulas import evaluate


class SubjectKey(NamedTuple):
    """Кому принадлежит форма: тренер, клиент, шаблон."""
    trainer_id: str
    client_id: str
    template_id: str


class FormState:
    """
    Плоская карта field_id -> value для одной тройки (тренер, клиент, шаблон).
    После каждого изменения пересчитывает все вычисляемые поля шаблона.
    """

    def __init__(self, template: Template, data: Optional[Mapping[str, Any]] = None) -> None:
        self.template = template
        self._calculated = template.calculated_fields()
        self._calculated_ids = {f.id for f in self._calculated}
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, field_id: str, default: Any = None) -> Any:
        return self._data.get(field_id, default)

    def __getitem__(self, field_id: str) -> Any:
        return self._data[field_id]

    def __contains__(self, field_id: str) -> bool:
        return field_id in self._data

    def __len__(self) -> int:
        return len(self._data)

    def is_empty(self) -> bool:
        return not self._data

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)

    def replace(self, data: Optional[Mapping[str, Any]]) -> None:
        """Полная замена состояния сохранённым блобом, без слияния и пересчёта."""
        self._data = dict(data or {})

    def accept(self, data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Полная замена внешним вводом (PUT целиком). Присланные значения
        вычисляемых полей не принимаются на веру: отбрасываются и пересчитываются.
        """
        self._data = {k: v for k, v in (data or {}).items() if k not in self._calculated_ids}
        self.recompute()
        return self.snapshot()

    def set_field(self, field_id: str, value: Any) -> Dict[str, Any]:
        if field_id in self._calculated_ids:
            raise ValueError(f"Поле {field_id!r} вычисляемое, его нельзя задать вручную")
        self._data[field_id] = value
        self.recompute()
        return self.snapshot()

    def update(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        # по одному, как последовательные вводы пользователя
        for field_id, value in changes.items():
            self.set_field(field_id, value)
        return self.snapshot()

    def recompute(self) -> None:
        # пересчитываем все вычисляемые поля, неудачный результат (None) не затирает прежнее значение
        for field in self._calculated:
            value = evaluate(field.formula_kind, self._data)
            if value is not None:
                self._data[field.id] = value
