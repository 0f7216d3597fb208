from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class AssessmentSave(BaseModel):
    data: Dict[str, Any] = {}
    status: Literal["draft", "complete"] = "draft"


class ClientBrief(BaseModel):
    id: str
    name: Optional[str] = None
    email: str

    model_config = ConfigDict(from_attributes=True)


class AssessmentOut(BaseModel):
    id: str
    trainer_id: str
    client_id: str
    type: str
    data: Dict[str, Any]
    status: Literal["draft", "complete"]
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientBrief] = None

    model_config = ConfigDict(from_attributes=True)


class EvaluateRequest(BaseModel):
    type: str
    data: Dict[str, Any] = {}
    # изменения применяются по одному, как ввод пользователя
    changes: Dict[str, Any] = {}


class ProgressOut(BaseModel):
    completed: int
    total: int
    percentage: int
    missing: List[str] = []


class EvaluateResponse(BaseModel):
    type: str
    data: Dict[str, Any]
    visible_sections: List[str]
    visible_fields: List[str]
    progress: ProgressOut
