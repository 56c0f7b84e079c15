from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from bustravel.database import get_db
from bustravel.auth.schemas import UserCreate, User, LoginRequest, AuthResponse
from bustravel.auth.service import UserService
from bustravel.auth.utils import create_access_token
from bustravel.auth.dependencies import get_current_user
from bustravel.exceptions import BookingEngineError, to_http_exception

router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new traveller account"""
    try:
        db_user = UserService.create_user(
            db=db,
            email=user.email,
            name=user.name,
            password=user.password
        )
    except BookingEngineError as e:
        raise to_http_exception(e)

    access_token = create_access_token(db_user.id, db_user.email, db_user.role)
    return AuthResponse(access_token=access_token, user=db_user)

@router.post("/login", response_model=AuthResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password"""
    user = UserService.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.id, user.email, user.role)
    return AuthResponse(access_token=access_token, user=user)

@router.get("/me", response_model=User)
def read_users_me(current_user=Depends(get_current_user)):
    """Get current user profile"""
    return current_user
