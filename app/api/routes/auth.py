from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas.auth import SignUpRequest, LoginRequest, TokenResponse, UserResponse
from app.services.auth import AuthService
from app.services.exceptions import EmailAlreadyExistsError, InvalidCredentialsError

router = APIRouter()


@router.post("/signup", response_model=UserResponse, status_code=201)
async def sign_up(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a school account."""
    service = AuthService(db)
    try:
        return await service.sign_up(
            email=data.email,
            password=data.password,
            name=data.name,
            school_id=data.school_id,
        )
    except EmailAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    service = AuthService(db)
    try:
        token = await service.login(data.email, data.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return TokenResponse(access_token=token)


@router.get("/profile", response_model=UserResponse)
async def profile(user: User = Depends(get_current_user)):
    return user
