from fastapi import APIRouter, Depends

from dependencies import get_current_user
from models import User
from schemas import UserEnvelope, UserData, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserEnvelope)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return UserEnvelope(data=UserData(user=UserResponse.model_validate(current_user)))
