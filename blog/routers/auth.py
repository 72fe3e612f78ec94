from fastapi import APIRouter

from blog.auth import OptionalUser
from blog.schemas import UserResponse
from blog.services.user_service import user_to_dict

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.get("/me", response_model=UserResponse | None)
async def me(user: OptionalUser):
    return user_to_dict(user) if user else None
