# app/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.repositories.user_repo import UserRepository
from app.schemas.user import TelegramUserUpsert, UserRead
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


@router.post("/telegram", response_model=UserRead)
def save_telegram_user(
    payload: TelegramUserUpsert,
    session: Session = Depends(get_session),
):
    """
    Register or refresh the Telegram user opening the Mini App.

    Existing users get their username/names updated; the phone only
    changes when a new one is sent.
    """
    return service.save_telegram_user(session, payload, phone=payload.phone)
