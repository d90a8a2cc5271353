from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from src.auth.dependencies import get_current_user, require_admin
from src.auth.schemas import (
    User, UserCreate, UserUpdate, UserListResponse,
    LoginRequest, AuthResponse, RefreshRequest, RefreshResponse
)
from src.activity.schemas import ActivityType
from src.activity.service import ActivityLogService
from src.auth.service import UserService
from src.auth.utils import REFRESH_TOKEN, create_access_token, create_refresh_token, decode_token
from src.database import get_db

router = APIRouter()
users_router = APIRouter()

def _access_token_for(user) -> str:
    return create_access_token({"sub": str(user.id), "is_admin": user.is_admin})

# Authentication
@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create a passenger account"""
    try:
        return UserService.create_user(db=db, user=user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access and a refresh token"""
    user = UserService.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    ActivityLogService.record(
        db, ActivityType.LOGIN, "User logged in", f"{user.name} <{user.email}> signed in", user=user
    )
    return AuthResponse(
        access_token=_access_token_for(user),
        refresh_token=create_refresh_token(user.id),
        user=User.model_validate(user)
    )

@router.post("/refresh", response_model=RefreshResponse)
def refresh_access_token(request: RefreshRequest, db: Session = Depends(get_db)):
    claims = decode_token(request.refresh_token, REFRESH_TOKEN)
    user = UserService.get_user_by_id(db, claims["user_id"]) if claims else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )
    return RefreshResponse(access_token=_access_token_for(user))

@router.get("/me", response_model=User)
def read_profile(current_user = Depends(get_current_user)):
    return current_user

@router.put("/me", response_model=User)
def update_profile(
    user_update: UserUpdate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return UserService.update_user(db=db, user_id=current_user.id, user_update=user_update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

# User administration
@users_router.get("", response_model=UserListResponse)
def list_users(admin_user = Depends(require_admin), db: Session = Depends(get_db)):
    """All accounts, newest first"""
    users = UserService.list_users(db)
    return UserListResponse(total=len(users), data=users)

@users_router.put("/{user_id}/promote", response_model=User)
def promote_user(user_id: int, admin_user = Depends(require_admin), db: Session = Depends(get_db)):
    """Grant admin rights to an account"""
    user = UserService.promote(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user

@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, admin_user = Depends(require_admin), db: Session = Depends(get_db)):
    if user_id == admin_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete themselves")
    try:
        deleted = UserService.delete_user(db, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
