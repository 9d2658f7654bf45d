"""
Upgrade Request Service - users ask for a paid plan, admins process the request.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from crud.upgrade_request import UpgradeRequestRepository
from crud.user import UserRepository
from database_models import UpgradeRequest
from services.subscription_service import FREE_TRIAL_PLAN, SubscriptionService, resolve_plan
from utils.cache import invalidate_cached

logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"
STATUSES = (PENDING, "approved", "rejected", COMPLETED)


def serialize_upgrade_request(request: UpgradeRequest) -> dict:
    return {
        "id": request.id,
        "user_id": request.user_id,
        "user_email": request.user_email,
        "current_plan": request.current_plan,
        "requested_plan": request.requested_plan,
        "message": request.message,
        "status": request.status,
        "admin_notes": request.admin_notes,
        "created_at": request.created_at.isoformat() if request.created_at else None,
        "updated_at": request.updated_at.isoformat() if request.updated_at else None,
        "processed_at": request.processed_at.isoformat() if request.processed_at else None,
        "processed_by": request.processed_by,
    }


class UpgradeRequestService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.requests = UpgradeRequestRepository(db)
        self.users = UserRepository(db)

    async def create_upgrade_request(self, user_id: int, requested_plan: str,
                                     message: Optional[str] = None) -> UpgradeRequest:
        """
        Raises:
            HTTPException: 404 if the user is gone, 400 for an unknown or free plan
        """
        user = await self.users.get_user_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User data not found")

        plan = resolve_plan(requested_plan)
        if plan is None or plan.id == FREE_TRIAL_PLAN.id:
            raise HTTPException(status_code=400, detail=f"Unknown plan: {requested_plan}")

        current_plan = SubscriptionService.get_plan(user).display_name
        request = await self.requests.create_request({
            "user_id": user.id,
            "user_email": user.email,
            "current_plan": current_plan,
            "requested_plan": plan.display_name,
            "message": message or None,
            "status": PENDING,
        })
        logger.info(f"Upgrade request {request.id} created: {user.email} {current_plan} -> {plan.display_name}")
        return request

    async def get_user_upgrade_requests(self, email: str) -> List[UpgradeRequest]:
        return await self.requests.list_for_email(email)

    async def get_pending_upgrade_requests(self) -> List[UpgradeRequest]:
        return await self.requests.list_by_status(PENDING)

    async def get_upgrade_request(self, request_id: int) -> UpgradeRequest:
        request = await self.requests.get_request(request_id)
        if request is None:
            raise HTTPException(status_code=404, detail="Upgrade request not found")
        return request

    async def get_upgrade_request_stats(self) -> Dict[str, int]:
        """Request counts per status plus the overall total."""
        counts = await self.requests.count_by_status()
        stats = {"total": sum(counts.values())}
        for status in STATUSES:
            stats[status] = counts.get(status, 0)
        return stats

    async def update_upgrade_request_status(self, request_id: int, status: str, admin_id: int,
                                            admin_notes: Optional[str] = None) -> UpgradeRequest:
        """
        Record an admin decision. Completing a request switches the user onto
        the requested plan, starting a new billing period now.
        """
        request = await self.get_upgrade_request(request_id)

        now = datetime.now(timezone.utc)
        updates = {"status": status, "processed_at": now, "processed_by": admin_id}
        if admin_notes is not None:
            updates["admin_notes"] = admin_notes
        request = await self.requests.update_request(request, updates)

        if status == COMPLETED:
            user = await self.users.get_user_by_id(request.user_id)
            if user is None:
                raise HTTPException(status_code=404, detail="User data not found")
            await self.users.activate_plan(user, request.requested_plan, now)
            # Commit first or a concurrent /me re-caches the old plan
            await self.db.commit()
            invalidate_cached(f"user:{user.id}")
            logger.info(f"Activated plan {request.requested_plan} for user {user.id}")

        return request
