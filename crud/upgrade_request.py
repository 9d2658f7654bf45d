"""
UpgradeRequestRepository for plan upgrade requests
"""

from typing import Dict, List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import UpgradeRequest


class UpgradeRequestRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_request(self, data: dict) -> UpgradeRequest:
        request = UpgradeRequest(**data)
        self.db.add(request)
        await self.db.flush()
        await self.db.refresh(request)
        return request

    async def get_request(self, request_id: int) -> Optional[UpgradeRequest]:
        result = await self.db.execute(
            select(UpgradeRequest).where(UpgradeRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def list_for_email(self, email: str) -> List[UpgradeRequest]:
        result = await self.db.execute(
            select(UpgradeRequest)
            .where(UpgradeRequest.user_email == email.lower())
            .order_by(UpgradeRequest.created_at.desc(), UpgradeRequest.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_status(self, status: str) -> List[UpgradeRequest]:
        result = await self.db.execute(
            select(UpgradeRequest)
            .where(UpgradeRequest.status == status)
            .order_by(UpgradeRequest.created_at.desc(), UpgradeRequest.id.desc())
        )
        return list(result.scalars().all())

    async def update_request(self, request: UpgradeRequest, updates: dict) -> UpgradeRequest:
        for key, value in updates.items():
            if hasattr(request, key):
                setattr(request, key, value)
        await self.db.flush()
        await self.db.refresh(request)
        return request

    async def count_by_status(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(UpgradeRequest.status, func.count(UpgradeRequest.id)).group_by(UpgradeRequest.status)
        )
        return {status: count for status, count in result.all()}
