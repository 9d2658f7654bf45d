"""
ReservationRepository for table reservations
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Reservation


class ReservationRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_reservation(self, data: dict) -> Reservation:
        reservation = Reservation(**data)
        self.db.add(reservation)
        await self.db.flush()
        await self.db.refresh(reservation)
        return reservation

    async def list_reservations(self, restaurant_id: int) -> List[Reservation]:
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.restaurant_id == restaurant_id)
            .order_by(Reservation.reservation_date.asc(), Reservation.reservation_time.asc())
        )
        return list(result.scalars().all())

    async def get_reservation(self, reservation_id: int, restaurant_id: int) -> Optional[Reservation]:
        result = await self.db.execute(
            select(Reservation).where(
                Reservation.id == reservation_id,
                Reservation.restaurant_id == restaurant_id,
            )
        )
        return result.scalar_one_or_none()

    async def update_status(self, reservation: Reservation, status: str) -> Reservation:
        reservation.status = status
        await self.db.flush()
        await self.db.refresh(reservation)
        return reservation
