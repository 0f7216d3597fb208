from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from fitassess.database import get_db
from fitassess.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Пользователь по email и паролю; None, если нет такого или пароль не подошёл."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not pwd_context.verify(password, user.password_hash):
        return None
    return user


def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    # упрощённая схема: токен = id пользователя
    user = db.get(User, token)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


def get_current_trainer(user: User = Depends(get_current_user)) -> User:
    """Оценками управляет только тренер: он владелец записей."""
    if user.role != "trainer":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Доступно только тренерам")
    return user
