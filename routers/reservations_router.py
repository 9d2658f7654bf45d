import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_restaurant_id
from crud.reservation import ReservationRepository
from crud.restaurant import RestaurantRepository
from database import get_db
from database_models import Reservation
from models.reservation import CreateReservationRequest, UpdateReservationRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reservations", tags=["reservations"])


def serialize_reservation(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "restaurant_id": reservation.restaurant_id,
        "customer_name": reservation.customer_name,
        "customer_email": reservation.customer_email,
        "customer_phone": reservation.customer_phone,
        "party_size": reservation.party_size,
        "reservation_date": reservation.reservation_date.isoformat(),
        "reservation_time": reservation.reservation_time.strftime("%H:%M"),
        "special_requests": reservation.special_requests,
        "table_preference": reservation.table_preference,
        "status": reservation.status,
    }


@router.post("", status_code=201)
async def create_reservation(request: CreateReservationRequest, db: AsyncSession = Depends(get_db)):
    """Book a table from the public restaurant page (no authentication)."""
    if request.party_size <= 0:
        raise HTTPException(status_code=400, detail="Party size must be greater than 0")

    # Times are the restaurant's local wall clock, compared against the server clock
    if datetime.combine(request.reservation_date, request.reservation_time) < datetime.now():
        raise HTTPException(status_code=400, detail="Reservation date and time cannot be in the past")

    if await RestaurantRepository(db).get_by_id(request.restaurant_id) is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    reservation = await ReservationRepository(db).create_reservation({
        "restaurant_id": request.restaurant_id,
        "customer_name": request.customer_name,
        "customer_email": request.customer_email or None,
        "customer_phone": request.customer_phone,
        "party_size": request.party_size,
        "reservation_date": request.reservation_date,
        "reservation_time": request.reservation_time,
        "special_requests": request.special_requests or None,
        "table_preference": None if request.table_preference == "any" else request.table_preference,
        "status": "pending",
    })
    logger.info(f"Reservation {reservation.id} created for restaurant {request.restaurant_id}")
    return serialize_reservation(reservation)


@router.get("")
async def list_reservations(
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    reservations = await ReservationRepository(db).list_reservations(restaurant_id)
    return [serialize_reservation(r) for r in reservations]


@router.patch("/{reservation_id}")
async def update_reservation_status(
    reservation_id: int,
    request: UpdateReservationRequest,
    restaurant_id: int = Depends(get_current_restaurant_id),
    db: AsyncSession = Depends(get_db),
):
    repo = ReservationRepository(db)
    reservation = await repo.get_reservation(reservation_id, restaurant_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    reservation = await repo.update_status(reservation, request.status)
    return serialize_reservation(reservation)
