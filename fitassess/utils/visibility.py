from __future__ import annotations

from typing import Any, List, Mapping, Optional

from fitassess.schemas.template import Conditional, Section, Template, TemplateField

ANY_OF_TRIGGER = "Yes"


def condition_met(conditional: Optional[Conditional], state: Mapping[str, Any]) -> bool:
    """
    Проверяет условие видимости по текущим значениям.
    Поле, которого нет в состоянии (или в шаблоне), условие не выполняет.
    """
    if conditional is None:
        return True
    if conditional.any_of is not None:
        return any(state.get(fid) == ANY_OF_TRIGGER for fid in conditional.any_of)
    # строгое равенство: 1 != "1"
    return state.get(conditional.field) == conditional.value


def is_section_visible(section: Section, state: Mapping[str, Any]) -> bool:
    return condition_met(section.conditional, state)


def is_field_visible(field: TemplateField, state: Mapping[str, Any]) -> bool:
    return condition_met(field.conditional, state)


def visible_sections(template: Template, state: Mapping[str, Any]) -> List[Section]:
    return [s for s in template.sections if is_section_visible(s, state)]


def visible_fields(section: Section, state: Mapping[str, Any]) -> List[TemplateField]:
    """Видимые поля секции: прямые и из подсекций, по их собственным условиям."""
    return [f for f in section.iter_fields() if is_field_visible(f, state)]


def visible_template_fields(template: Template, state: Mapping[str, Any]) -> List[TemplateField]:
    fields: List[TemplateField] = []
    for section in visible_sections(template, state):
        fields.extend(visible_fields(section, state))
    return fields
