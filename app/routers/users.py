from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.dependencies import get_db, get_current_identity, roles_allowed
from app.models.enums import UserRole
from app.schemas.user import MessageResponse, UserResponse, UserUpdate
from app.services import users as user_service
from app.services.authorization import require_owner_or_admin
from app.services.tokens import TokenClaims

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await user_service.get_user(db, identity.subject)

@router.get("", response_model=list[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(roles_allowed(UserRole.ADMIN, UserRole.PROJECT_MANAGER)),
):
    return await user_service.list_users(db)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    return await user_service.get_user(db, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    require_owner_or_admin(identity, user_id)
    user = await user_service.update_profile(
        db,
        user_id,
        user_update.model_dump(exclude_unset=True),
        allow_admin_fields=identity.is_admin,
    )
    await db.commit()
    await db.refresh(user)
    return user

@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    identity: TokenClaims = Depends(get_current_identity),
):
    require_owner_or_admin(identity, user_id)
    await user_service.delete_account(db, user_id)
    await db.commit()
    return {"message": "User deleted successfully"}
