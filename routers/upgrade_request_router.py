"""
Upgrade Request Router - user requests and admin processing
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, require_admin
from database import get_db
from models.upgrade_request import CreateUpgradeRequest, UpdateUpgradeRequest
from services.upgrade_request_service import UpgradeRequestService, serialize_upgrade_request

upgrade_request_router = APIRouter(prefix="/api/upgrade-requests", tags=["upgrade-requests"])
admin_upgrade_request_router = APIRouter(prefix="/api/admin/upgrade-requests", tags=["admin"])


@upgrade_request_router.post("", status_code=201)
async def create_upgrade_request(
    request: CreateUpgradeRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    upgrade_request = await UpgradeRequestService(db).create_upgrade_request(
        current_user["id"], request.requested_plan, request.message
    )
    return {"ok": True, "upgrade_request": serialize_upgrade_request(upgrade_request)}


@upgrade_request_router.get("")
async def list_my_upgrade_requests(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await UpgradeRequestService(db).get_user_upgrade_requests(current_user["email"])
    return {"ok": True, "upgrade_requests": [serialize_upgrade_request(r) for r in requests]}


@admin_upgrade_request_router.get("")
async def list_pending_upgrade_requests(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    requests = await UpgradeRequestService(db).get_pending_upgrade_requests()
    return {"ok": True, "upgrade_requests": [serialize_upgrade_request(r) for r in requests]}


@admin_upgrade_request_router.get("/stats")
async def upgrade_request_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await UpgradeRequestService(db).get_upgrade_request_stats()
    return {"ok": True, "stats": stats}


@admin_upgrade_request_router.get("/{request_id}")
async def get_upgrade_request(
    request_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    upgrade_request = await UpgradeRequestService(db).get_upgrade_request(request_id)
    return {"ok": True, "upgrade_request": serialize_upgrade_request(upgrade_request)}


@admin_upgrade_request_router.patch("/{request_id}")
async def update_upgrade_request(
    request_id: int,
    request: UpdateUpgradeRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    upgrade_request = await UpgradeRequestService(db).update_upgrade_request_status(
        request_id, request.status, admin["id"], request.admin_notes
    )
    return {"ok": True, "upgrade_request": serialize_upgrade_request(upgrade_request)}
