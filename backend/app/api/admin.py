import logging

from fastapi import APIRouter, Depends

from api.deps import get_storage
from config import settings
from core.errors import AuthError, DomainValidationError
from core.security import authenticate, create_access_token, hash_password, require_admin, verify_password
from schemas import AdminProfile, AdminProfileUpdate, LoginRequest, LoginResponse
from storage import Storage

logger = logging.getLogger("fieldops.api.admin")

router = APIRouter(tags=["admin"])


@router.post("/api/auth/login", response_model=LoginResponse)
async def login(data: LoginRequest, storage: Storage = Depends(get_storage)):
    identity = await authenticate(storage, data.username, data.password)
    if identity is None:
        logger.warning("Failed login for %s", data.username)
        raise AuthError("Invalid username or password")
    username, role = identity
    return LoginResponse(access_token=create_access_token(username, role), username=username, role=role)


async def _profile(storage: Storage) -> AdminProfile:
    profile = await storage.get_admin_profile()
    if profile is None:
        profile = await storage.upsert_admin_profile({
            "username": settings.DEFAULT_ADMIN_USERNAME,
            "display_name": "Administrator",
            "email": settings.DEFAULT_ADMIN_EMAIL,
            "password_hash": hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        })
    return profile


@router.get("/api/admin/profile", response_model=AdminProfile, dependencies=[Depends(require_admin)])
async def get_profile(storage: Storage = Depends(get_storage)):
    return await _profile(storage)


@router.put("/api/admin/profile", response_model=AdminProfile, dependencies=[Depends(require_admin)])
async def update_profile(data: AdminProfileUpdate, storage: Storage = Depends(get_storage)):
    profile = await _profile(storage)
    changes = data.changes()
    current_password = changes.pop("current_password", None)
    new_password = changes.pop("new_password", None)
    confirm_password = changes.pop("confirm_password", None)

    if new_password is not None:
        if not verify_password(current_password or "", profile.password_hash):
            raise DomainValidationError("Current password is incorrect", ["currentPassword"])
        if new_password != confirm_password:
            raise DomainValidationError("Passwords do not match", ["confirmPassword"])
        changes["password_hash"] = hash_password(new_password)

    if "email" in changes:
        changes["email"] = str(changes["email"])
    updated = await storage.upsert_admin_profile(changes)
    logger.info("Admin profile updated (%s)", ", ".join(sorted(changes)) or "no changes")
    return updated
