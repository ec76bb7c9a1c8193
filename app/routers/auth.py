from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.dependencies import get_db, get_current_identity
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, RoleResponse
from app.services import users as user_service
from app.services.tokens import TokenClaims, issue_token
from app.utils.views import default_view

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.create_account(
        db,
        username=data.username,
        email=data.email,
        password=data.password,
        role=data.role,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    await db.commit()
    await db.refresh(user)
    return {
        "token": issue_token(user),
        "user": user,
        "redirectTo": default_view(user.role),
        "message": "User registered successfully",
    }

@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.verify_credentials(db, data.email, data.password)
    return {
        "token": issue_token(user),
        "user": user,
        "redirectTo": default_view(user.role),
        "message": "Login successful",
    }

@router.get("/user-role", response_model=RoleResponse)
async def user_role(identity: TokenClaims = Depends(get_current_identity)):
    return {"role": identity.role, "redirectTo": default_view(identity.role)}
