from fastapi import APIRouter, Depends

from dependencies import get_user_store
from models.users import LoginRequest, ProfileUpdate, User, UserRegister
from security import get_current_user
from services.auth_service import authenticate, register_user
from services.users import UserStore

router = APIRouter()

@router.post("/register", status_code=201)
async def register(
    data: UserRegister,
    users: UserStore = Depends(get_user_store)
):
    user, token = await register_user(users, data)
    return {
        "message": "Registration successful",
        "token": token,
        "user": user.model_dump(mode="json")
    }

@router.post("/login")
async def login(
    credentials: LoginRequest,
    users: UserStore = Depends(get_user_store)
):
    user, token = await authenticate(users, credentials.email, credentials.password)
    return {
        "message": "Login successful",
        "token": token,
        "user": user.model_dump(mode="json")
    }

@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return user.model_dump(mode="json")

@router.put("/profile")
async def update_profile(
    changes: ProfileUpdate,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store)
):
    updated = await users.update_profile(user.id, changes)
    return {
        "message": "Profile updated successfully",
        "user": updated.model_dump(mode="json")
    }
