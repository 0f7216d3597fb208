from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from fitassess.models.assessment import Assessment, ASSESSMENT_STATUSES

logger = logging.getLogger(__name__)


class DeleteResult(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def _find(db: Session, trainer_id: str, client_id: str, type_: str, with_client: bool = False) -> Optional[Assessment]:
    query = db.query(Assessment)
    if with_client:
        query = query.options(joinedload(Assessment.client))
    return (
        query
        .filter(
            Assessment.trainer_id == trainer_id,
            Assessment.client_id == client_id,
            Assessment.type == type_,
        )
        .first()
    )


def load_assessment(db: Session, trainer_id: str, client_id: str, type_: str) -> Optional[Assessment]:
    return _find(db, trainer_id, client_id, type_, with_client=True)


def save_assessment(
    db: Session,
    trainer_id: str,
    client_id: str,
    type_: str,
    data: Dict[str, Any],
    status: str,
) -> Assessment:
    """
    UPSERT по (trainer_id, client_id, type): одна запись на тройку.
    Первое сохранение создаёт запись, последующие её обновляют.
    Зафиксированная (complete) запись черновиком не понижается.
    """
    if not trainer_id or not client_id or not type_:
        raise ValueError("trainer_id, client_id и type обязательны")
    if status not in ASSESSMENT_STATUSES:
        raise ValueError(f"status должен быть одним из {list(ASSESSMENT_STATUSES)}")

    payload = dict(data or {})
    existing = _find(db, trainer_id, client_id, type_)
    if existing is None:
        record = Assessment(
            id=str(uuid4()),
            trainer_id=trainer_id,
            client_id=client_id,
            type=type_,
            data=payload,
            status=status,
        )
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            # параллельная вставка той же тройки: обновляем то, что уже есть
            db.rollback()
            existing = _find(db, trainer_id, client_id, type_)
            if existing is None:
                raise
        else:
            db.refresh(record)
            return record

    existing.data = payload
    if existing.status != "complete":
        existing.status = status
    existing.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(existing)
    return existing


def delete_assessment(db: Session, assessment_id: str, trainer_id: str) -> DeleteResult:
    """Удаляет запись, только если она принадлежит этому тренеру."""
    record = db.get(Assessment, assessment_id)
    if record is None:
        return DeleteResult.NOT_FOUND
    if record.trainer_id != trainer_id:
        logger.warning("Тренер %s пытался удалить чужую оценку %s", trainer_id, assessment_id)
        return DeleteResult.FORBIDDEN
    db.delete(record)
    db.commit()
    return DeleteResult.DELETED


def list_assessments(db: Session, trainer_id: str) -> List[Assessment]:
    """Записи тренера вместе с клиентом (id, name, email) для дашборда, свежие первыми."""
    return (
        db.query(Assessment)
        .options(joinedload(Assessment.client))
        .filter(Assessment.trainer_id == trainer_id)
        .order_by(Assessment.updated_at.desc())
        .all()
    )


class AssessmentStore:
    """
    Коллаборатор хранения для контроллера автосохранения.
    Каждый вызов открывает свою сессию БД, поэтому методы можно звать из asyncio.to_thread.
    Возвращаемые записи отсоединены от сессии (expunge); client подгружен только у load и list.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def _run(self, fn, *args):
        db = self._session_factory()
        try:
            result = fn(db, *args)
            if isinstance(result, list):
                for r in result:
                    db.expunge(r)
            elif isinstance(result, Assessment):
                db.expunge(result)
            return result
        finally:
            db.close()

    def load_assessment(self, trainer_id: str, client_id: str, type_: str) -> Optional[Assessment]:
        return self._run(load_assessment, trainer_id, client_id, type_)

    def save_assessment(
        self, trainer_id: str, client_id: str, type_: str, data: Dict[str, Any], status: str
    ) -> Assessment:
        return self._run(save_assessment, trainer_id, client_id, type_, data, status)

    def delete_assessment(self, assessment_id: str, trainer_id: str) -> DeleteResult:
        return self._run(delete_assessment, assessment_id, trainer_id)

    def list_assessments(self, trainer_id: str) -> List[Assessment]:
        return self._run(list_assessments, trainer_id)
