from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from fitassess.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="trainer")  # trainer | client

    # тренер владеет оценками, клиент — их субъект
    assessments = relationship(
        "Assessment",
        back_populates="trainer",
        foreign_keys="Assessment.trainer_id",
        cascade="all, delete-orphan",
    )
