from __future__ import annotations

from typing import Any, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from fitassess.utils.formulas import FormulaKind, resolve_formula

FieldType = Literal[
    "text", "email", "tel", "number", "date", "textarea",
    "radio", "checkbox", "select", "scale", "calculated", "signature",
]


class _Frozen(BaseModel):
    # шаблоны неизменяемы после загрузки; лишние ключи (справочники и т.п.) игнорируем
    model_config = ConfigDict(frozen=True, extra="ignore")


class Conditional(_Frozen):
    """
    Условие видимости. Две формы:
      {field, value}  — видно, если значение поля строго равно value;
      {any_of: [...]} — видно, если хотя бы одно из полей равно "Yes".
    """
    field: Optional[str] = None
    value: Optional[str] = None
    any_of: Optional[Tuple[str, ...]] = None

    @model_validator(mode="after")
    def _one_shape(self) -> "Conditional":
        has_pair = self.field is not None
        has_any = self.any_of is not None
        if has_pair == has_any:
            raise ValueError("conditional должен содержать либо field/value, либо any_of")
        if has_pair and self.value is None:
            raise ValueError(f"conditional по полю {self.field!r} без value")
        return self


class TemplateField(_Frozen):
    id: str
    type: FieldType
    label: str
    required: bool = False
    options: Optional[Tuple[str, ...]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    decimal: Optional[Union[bool, int]] = None
    conditional: Optional[Conditional] = None
    formula: Optional[str] = None
    formula_kind: Optional[FormulaKind] = None
    placeholder: Optional[str] = None
    rows: Optional[int] = None
    help_text: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _resolve_formula(cls, data: Any) -> Any:
        # формулу сопоставляем с FormulaKind при загрузке, а не при вычислении
        if isinstance(data, dict) and data.get("formula") is not None:
            data = dict(data)
            data["formula_kind"] = resolve_formula(data["formula"])
        return data

    @model_validator(mode="after")
    def _check(self) -> "TemplateField":
        if self.type == "calculated" and self.formula_kind is None:
            raise ValueError(f"вычисляемое поле {self.id!r} без formula")
        if self.conditional is not None and self.conditional.any_of is not None:
            raise ValueError(f"поле {self.id!r}: any_of допустим только для секций")
        return self

    @property
    def is_calculated(self) -> bool:
        return self.type == "calculated" and self.formula_kind is not None


class Subsection(_Frozen):
    id: str
    title: str
    fields: Tuple[TemplateField, ...] = ()


class Section(_Frozen):
    id: str
    title: str
    description: Optional[str] = None
    conditional: Optional[Conditional] = None
    fields: Tuple[TemplateField, ...] = ()
    subsections: Tuple[Subsection, ...] = ()

    def iter_fields(self) -> Iterator[TemplateField]:
        """Прямые поля секции, затем поля всех подсекций."""
        yield from self.fields
        for sub in self.subsections:
            yield from sub.fields


class Template(_Frozen):
    id: str
    title: str
    version: Optional[str] = None
    sections: Tuple[Section, ...] = ()

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_str(cls, v: Any) -> Any:
        # в YAML "version: 1.0" читается как float
        return None if v is None else str(v)

    @model_validator(mode="after")
    def _unique_ids(self) -> "Template":
        seen = set()
        for s in self.sections:
            if s.id in seen:
                raise ValueError(f"повторяющийся id секции: {s.id!r}")
            seen.add(s.id)
        seen = set()
        for f in self.iter_fields():
            if f.id in seen:
                raise ValueError(f"повторяющийся id поля: {f.id!r}")
            seen.add(f.id)
        return self

    def iter_fields(self) -> Iterator[TemplateField]:
        for s in self.sections:
            yield from s.iter_fields()

    def calculated_fields(self) -> List[TemplateField]:
        return [f for f in self.iter_fields() if f.is_calculated]

    def field_ids(self) -> List[str]:
        return [f.id for f in self.iter_fields()]


class TemplateSummary(BaseModel):
    id: str
    title: str
    version: Optional[str] = None
