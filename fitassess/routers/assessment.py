from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fitassess.database import get_db
from fitassess.models.user import User
from fitassess.schemas.assessment import (
    AssessmentOut,
    AssessmentSave,
    EvaluateRequest,
    EvaluateResponse,
    ProgressOut,
)
from fitassess.utils import assessment_store
from fitassess.utils.assessment_store import DeleteResult
from fitassess.utils.auth import get_current_trainer
from fitassess.utils.completion import IncompleteAssessmentError, ensure_complete, progress
from fitassess.utils.form_state import FormState
from fitassess.utils.template_loader import TemplateRegistry, get_registry
from fitassess.utils.visibility import visible_sections, visible_template_fields

router = APIRouter(prefix="/assessments", tags=["Assessments"])


def _template_or_404(registry: TemplateRegistry, template_id: str):
    try:
        return registry.get(template_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Шаблон '{template_id}' не найден")


def _client_or_404(db: Session, client_id: str) -> User:
    client = db.get(User, client_id)
    if not client or client.role != "client":
        raise HTTPException(status_code=404, detail="Клиент не найден")
    return client


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_form(payload: EvaluateRequest, registry: TemplateRegistry = Depends(get_registry)):
    """
    Прогоняет изменения через состояние формы и возвращает то, что нужно
    для отрисовки: пересчитанные данные, видимые секции и поля, прогресс.
    """
    template = _template_or_404(registry, payload.type)
    state = FormState(template, payload.data)
    try:
        data = state.update(payload.changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    p = progress(template, data)
    return EvaluateResponse(
        type=template.id,
        data=data,
        visible_sections=[s.id for s in visible_sections(template, data)],
        visible_fields=[f.id for f in visible_template_fields(template, data)],
        progress=ProgressOut(completed=p.completed, total=p.total, percentage=p.percentage, missing=p.missing),
    )


@router.get("/", response_model=List[AssessmentOut])
def list_my_assessments(db: Session = Depends(get_db), trainer: User = Depends(get_current_trainer)):
    """Оценки тренера, сначала последние изменённые."""
    return assessment_store.list_assessments(db, trainer.id)


@router.get("/{client_id}/{template_id}", response_model=AssessmentOut)
def load(
    client_id: str,
    template_id: str,
    db: Session = Depends(get_db),
    trainer: User = Depends(get_current_trainer),
):
    record = assessment_store.load_assessment(db, trainer.id, client_id, template_id)
    if not record:
        raise HTTPException(status_code=404, detail="Оценка не найдена")
    return record


@router.put("/{client_id}/{template_id}", response_model=AssessmentOut)
def save(
    client_id: str,
    template_id: str,
    payload: AssessmentSave,
    db: Session = Depends(get_db),
    trainer: User = Depends(get_current_trainer),
    registry: TemplateRegistry = Depends(get_registry),
):
    """
    UPSERT оценки. Данные проходят через состояние формы: вычисляемые поля
    считаются заново. complete принимается только для формы на 100%.
    """
    template = _template_or_404(registry, template_id)
    _client_or_404(db, client_id)
    data = FormState(template).accept(payload.data)
    if payload.status == "complete":
        try:
            ensure_complete(template, data)
        except IncompleteAssessmentError as e:
            raise HTTPException(status_code=400, detail={"message": str(e), "missing": e.missing})
    try:
        return assessment_store.save_assessment(
            db, trainer.id, client_id, template_id, data, payload.status
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{assessment_id}")
def delete(assessment_id: str, db: Session = Depends(get_db), trainer: User = Depends(get_current_trainer)):
    result = assessment_store.delete_assessment(db, assessment_id, trainer.id)
    if result == DeleteResult.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Оценка не найдена")
    if result == DeleteResult.FORBIDDEN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Оценка принадлежит другому тренеру")
    return {"deleted": True, "id": assessment_id}
