from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from fitassess.database import Base

ASSESSMENT_STATUSES = ("draft", "complete")


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(String, primary_key=True, index=True)

    trainer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    trainer = relationship("User", back_populates="assessments", foreign_keys=[trainer_id])

    client_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    client = relationship("User", foreign_keys=[client_id])

    # id шаблона из каталога (например, par_q_plus)
    type = Column(String, nullable=False)

    # плоская карта field_id -> value
    data = Column(JSON, nullable=False, default=dict)
    status = Column(String, nullable=False, default="draft")  # draft | complete

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("trainer_id", "client_id", "type", name="uq_assessment_triple"),
    )
