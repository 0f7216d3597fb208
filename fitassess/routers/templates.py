from typing import List

from fastapi import APIRouter, Depends, HTTPException

from fitassess.schemas.template import Template, TemplateSummary
from fitassess.utils.template_loader import TemplateRegistry, get_registry

router = APIRouter(prefix="/templates", tags=["Templates"])


@router.get("/", response_model=List[TemplateSummary])
def list_templates(registry: TemplateRegistry = Depends(get_registry)):
    return registry.summaries()


@router.get("/{template_id}", response_model=Template)
def get_template(template_id: str, registry: TemplateRegistry = Depends(get_registry)):
    try:
        return registry.get(template_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Шаблон не найден")
