from __future__ import annotations

import logging
from pathlib import Path
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from fitassess.schemas.template import Template, TemplateSummary
from fitassess.settings import DEFAULT_TEMPLATES_DIR, get_settings

logger = logging.getLogger(__name__)

# JSON — подмножество YAML, поэтому читаем всё через yaml.safe_load
CATALOG_PATTERNS = ("*.json", "*.yaml", "*.yml")


class CatalogError(Exception):
    """Исключение при проблемах с каталогом шаблонов."""
    pass


def _load_document(path: Path) -> Dict[str, Any]:
    """Читает JSON/YAML и возвращает dict. Бросает CatalogError при ошибке."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CatalogError(f"Ошибка чтения шаблона {path}: {e}") from e
    if not isinstance(data, dict):
        raise CatalogError(f"Шаблон должен быть объектом (mapping): {path}")
    return data


def discover_templates(root: Path | None = None) -> List[Path]:
    """Ищет файлы шаблонов в каталоге. Возвращает отсортированный список путей."""
    root = Path(root) if root else DEFAULT_TEMPLATES_DIR
    if not root.exists():
        return []
    found = set()
    for pattern in CATALOG_PATTERNS:
        found.update(p for p in root.rglob(pattern) if p.is_file())
    return sorted(found)


def parse_template(data: Dict[str, Any], source: str = "<memory>") -> Template:
    try:
        return Template.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"{source}: некорректный шаблон: {e}") from e


def _version_key(version: Optional[str]) -> Tuple:
    # "1.10" > "1.9"; нечисловые части сравниваем как строки
    if not version:
        return ()
    parts = []
    for chunk in version.split("."):
        parts.append((0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk))
    return tuple(parts)


class TemplateRegistry:
    """
    Хранилище неизменяемых версионированных шаблонов.
    Ключ — id шаблона; по умолчанию отдаётся самая свежая версия.
    """

    def __init__(self) -> None:
        self._templates: Dict[str, Dict[Optional[str], Template]] = {}

    def register(self, template: Template) -> Template:
        versions = self._templates.setdefault(template.id, {})
        if template.version in versions:
            raise CatalogError(
                f"Шаблон {template.id!r} версии {template.version!r} уже зарегистрирован"
            )
        versions[template.version] = template
        return template

    def get(self, template_id: str, version: Optional[str] = None) -> Template:
        versions = self._templates.get(template_id)
        if not versions:
            raise KeyError(template_id)
        if version is not None:
            if version not in versions:
                raise KeyError(f"{template_id}@{version}")
            return versions[version]
        return versions[max(versions, key=_version_key)]

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def summaries(self) -> List[TemplateSummary]:
        out = []
        for template_id in sorted(self._templates):
            t = self.get(template_id)
            out.append(TemplateSummary(id=t.id, title=t.title, version=t.version))
        return out

    def load_file(self, path: Path) -> Template:
        return self.register(parse_template(_load_document(path), source=str(path)))

    def load_catalog(self, root: Path | None = None, stop_on_error: bool = True) -> Dict[str, Any]:
        """
        Загружает все шаблоны из каталога.
        Возвращает словарь: { loaded: [ids], errors: {path: error}, root: str, count: int }
        При stop_on_error=True первая ошибка пробрасывается.
        """
        root = Path(root) if root else DEFAULT_TEMPLATES_DIR
        loaded: List[str] = []
        errors: Dict[str, str] = {}

        for p in discover_templates(root):
            try:
                loaded.append(self.load_file(p).id)
            except CatalogError as e:
                logger.error("Шаблон не загружен: %s", e)
                errors[str(p)] = str(e)
                if stop_on_error:
                    raise

        logger.info("Каталог шаблонов %s: загружено %d", root, len(loaded))
        return {"loaded": loaded, "errors": errors, "root": str(root), "count": len(loaded)}


def build_registry(root: Path | None = None) -> TemplateRegistry:
    registry = TemplateRegistry()
    registry.load_catalog(root)
    return registry


@lru_cache(maxsize=1)
def get_registry() -> TemplateRegistry:
    """Реестр каталога из настроек; грузится один раз на процесс."""
    return build_registry(get_settings().templates_dir)


if __name__ == "__main__":
    # Локальный запуск: python -m fitassess.utils.template_loader
    logging.basicConfig(level=logging.INFO)
    result = TemplateRegistry().load_catalog(stop_on_error=False)
    print("Проверка каталога завершена:", result)
