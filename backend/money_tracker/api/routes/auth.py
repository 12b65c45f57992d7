from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from money_tracker.core.database import get_db
from money_tracker.core.security import Identity, TokenService
from money_tracker.api.dependencies import get_current_identity, get_token_service
from money_tracker.schemas.auth import (
    IdentityResponse,
    LoginRequest,
    SignupResponse,
    Token,
    UserCreate,
)
from money_tracker.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

# Handlers are sync on purpose: FastAPI runs them in its threadpool, so
# bcrypt and database calls never block the event loop


@router.post("/signup", response_model=SignupResponse)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    user = auth_service.create_user(db, user_data.email, user_data.password)
    return SignupResponse(message="User created", user_id=user.id)


@router.post("/login", response_model=Token)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    """Login and get access token"""
    access_token = auth_service.login(db, token_service, credentials.email, credentials.password)
    return Token(access_token=access_token)


@router.get("/me", response_model=IdentityResponse)
async def get_current_user_info(identity: Identity = Depends(get_current_identity)):
    """Identity carried by the caller's token"""
    return IdentityResponse(user_id=identity.user_id, email=identity.email)
