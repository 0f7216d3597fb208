from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from fitassess.schemas.template import Section, Template
from fitassess.settings import Settings, get_settings
from fitassess.utils.assessment_store import DeleteResult
from fitassess.utils.completion import Progress, ensure_complete, progress
from fitassess.utils.form_state import FormState, SubjectKey
from fitassess.utils.template_loader import TemplateRegistry
from fitassess.utils.visibility import visible_sections

logger = logging.getLogger(__name__)


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"
    FAILED = "failed"  # N ошибок подряд, повторы продолжаются с максимальной задержкой


StatusListener = Callable[["AssessmentSession", SaveStatus], None]


class AssessmentSession:
    """
    Рабочая сессия одной тройки (тренер, клиент, шаблон).
    При смене клиента или шаблона создаётся новая, старая выбрасывается целиком.
    """

    def __init__(self, key: SubjectKey, template: Template, listeners: List[StatusListener]) -> None:
        self.key = key
        self.template = template
        self.state = FormState(template)
        self.status = SaveStatus.IDLE
        self.record_id: Optional[str] = None
        self.record_status = "draft"
        self.failures = 0
        self.closed = False
        self.completing = False
        self.lock = asyncio.Lock()
        self._listeners = listeners
        self._idle_handle: Optional[asyncio.TimerHandle] = None

    # --- форма ---

    def set_field(self, field_id: str, value: Any) -> Dict[str, Any]:
        return self.state.set_field(field_id, value)

    def visible_sections(self) -> List[Section]:
        return visible_sections(self.template, self.state.snapshot())

    def progress(self) -> Progress:
        return progress(self.template, self.state.snapshot())

    # --- статус сохранения ---

    def set_status(self, status: SaveStatus) -> None:
        if self.closed or status == self.status:
            return
        self.status = status
        for listener in self._listeners:
            listener(self, status)

    def schedule_idle(self, delay: float) -> None:
        self._cancel_idle()
        self._idle_handle = asyncio.get_running_loop().call_later(delay, self._back_to_idle)

    def _back_to_idle(self) -> None:
        self._idle_handle = None
        if self.status == SaveStatus.SAVED:
            self.set_status(SaveStatus.IDLE)

    def _cancel_idle(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def close(self) -> None:
        self._cancel_idle()
        self.closed = True


class AutosaveController:
    """
    Загрузка, автосохранение черновика по таймеру и финальная фиксация оценки.

    Статусы: idle -> saving -> (saved | error) -> idle; saved сам
    возвращается в idle через saved_display_delay. В каждой сессии
    не больше одной записи в полёте: тик таймера при занятой записи
    пропускается, complete дожидается её и пишет последним.
    """

    def __init__(
        self,
        store,
        registry: TemplateRegistry,
        settings: Optional[Settings] = None,
        listeners: Optional[List[StatusListener]] = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._settings = settings or get_settings()
        self._listeners: List[StatusListener] = list(listeners or [])
        self._session: Optional[AssessmentSession] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def session(self) -> Optional[AssessmentSession]:
        return self._session

    @property
    def status(self) -> SaveStatus:
        return self._session.status if self._session else SaveStatus.IDLE

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    async def open(self, trainer_id: str, client_id: str, template_id: str) -> AssessmentSession:
        """Выбор клиента и шаблона: закрывает прежнюю сессию, поднимает сохранённые данные."""
        await self.close()
        template = self._registry.get(template_id)
        session = AssessmentSession(SubjectKey(trainer_id, client_id, template_id), template, self._listeners)
        self._session = session

        try:
            record = await asyncio.to_thread(self._store.load_assessment, trainer_id, client_id, template_id)
        except Exception:
            # без загруженных данных автосохранение затёрло бы запись в БД
            logger.exception("Не удалось загрузить оценку %s", session.key)
            if self._session is session:
                self._session = None
            session.close()
            raise

        if self._session is not session:
            # пока ждали загрузку, выбрали другого клиента
            return session

        if record is not None:
            if isinstance(record.data, dict):
                session.state.replace(record.data)
            session.record_id = record.id
            session.record_status = record.status
        logger.info("Открыта оценка %s (запись: %s)", session.key, session.record_id or "новая")

        self._timer = asyncio.create_task(self._autosave_loop(session))
        return session

    async def close(self) -> None:
        session, self._session = self._session, None
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        if session is not None:
            session.close()

    def set_field(self, field_id: str, value: Any) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError("Клиент и шаблон не выбраны")
        return self._session.set_field(field_id, value)

    def _next_delay(self, session: AssessmentSession) -> float:
        interval = self._settings.autosave_interval
        if session.failures == 0:
            return interval
        cap = max(self._settings.backoff_max, interval)
        return min(interval * 2 ** (session.failures - 1), cap)

    async def _autosave_loop(self, session: AssessmentSession) -> None:
        while not session.closed:
            await asyncio.sleep(self._next_delay(session))
            if session is not self._session:
                return
            await self.autosave()

    async def autosave(self) -> bool:
        """Один тик автосохранения. False, если писать нечего или запись уже идёт."""
        session = self._session
        if session is None or session.state.is_empty():
            return False
        if session.lock.locked() or session.completing:
            logger.debug("Автосохранение %s пропущено: запись уже идёт", session.key)
            return False
        return await self._write(session) is not None

    async def complete(self):
        """
        Финальная фиксация со статусом complete. Ждёт черновик в полёте и пишет после него.
        Ошибку хранилища пробрасывает: это явное действие пользователя.
        Форма не на 100% -> IncompleteAssessmentError, запись не делается.
        """
        session = self._session
        if session is None:
            raise RuntimeError("Клиент и шаблон не выбраны")
        ensure_complete(session.template, session.state.snapshot())
        session.completing = True
        try:
            return await self._write(session, "complete", raise_errors=True)
        finally:
            session.completing = False

    async def _write(self, session: AssessmentSession, status: Optional[str] = None, raise_errors: bool = False):
        async with session.lock:
            if status is None:
                # черновик не понижает уже зафиксированную оценку
                status = "complete" if session.record_status == "complete" else "draft"
            session.set_status(SaveStatus.SAVING)
            data = session.state.snapshot()
            try:
                record = await asyncio.to_thread(self._store.save_assessment, *session.key, data, status)
            except Exception:
                session.failures += 1
                logger.exception(
                    "Ошибка сохранения %s (%s), подряд: %d", session.key, status, session.failures
                )
                if session.failures >= self._settings.max_failures:
                    session.set_status(SaveStatus.FAILED)
                else:
                    session.set_status(SaveStatus.ERROR)
                if raise_errors:
                    raise
                return None

            session.failures = 0
            session.record_id = record.id
            session.record_status = record.status
            session.set_status(SaveStatus.SAVED)
            if not session.closed:
                session.schedule_idle(self._settings.saved_display_delay)
            return record

    async def delete(self, assessment_id: str, trainer_id: str) -> DeleteResult:
        result = await asyncio.to_thread(self._store.delete_assessment, assessment_id, trainer_id)
        session = self._session
        if result == DeleteResult.DELETED and session is not None and session.record_id == assessment_id:
            # иначе следующий тик автосохранения создаст запись заново
            await self.close()
        return result

    async def list_assessments(self, trainer_id: str):
        return await asyncio.to_thread(self._store.list_assessments, trainer_id)
