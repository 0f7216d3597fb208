from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# .env лежит рядом с пакетом; грузим его только здесь, остальные модули берут настройки отсюда
load_dotenv(Path(__file__).with_name(".env"))

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_TEMPLATES_DIR = BASE_DIR / "templates_catalog"
DEFAULT_DATABASE_PATH = BASE_DIR / "fitassess.db"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} должен быть числом, получено: {raw!r}") from e


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} должен быть целым числом, получено: {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Параметры движка оценок (каталог шаблонов и автосохранение)."""
    templates_dir: Path = DEFAULT_TEMPLATES_DIR
    autosave_interval: float = 10.0      # секунды между тиками автосохранения
    saved_display_delay: float = 2.0     # сколько держим статус "saved"
    max_failures: int = 5                # после стольких ошибок подряд -> "failed"
    backoff_max: float = 300.0           # потолок экспоненциальной задержки


def get_settings() -> Settings:
    templates_dir = os.getenv("TEMPLATES_DIR")
    return Settings(
        templates_dir=Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR,
        autosave_interval=_float_env("AUTOSAVE_INTERVAL_SECONDS", 10.0),
        saved_display_delay=_float_env("SAVED_DISPLAY_SECONDS", 2.0),
        max_failures=_int_env("AUTOSAVE_MAX_FAILURES", 5),
        backoff_max=_float_env("AUTOSAVE_BACKOFF_MAX_SECONDS", 300.0),
    )


def get_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url and url.strip():
        return url.strip()
    # Фолбэк на локальную SQLite рядом с пакетом
    return f"sqlite:///{DEFAULT_DATABASE_PATH}"
