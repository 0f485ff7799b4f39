# provider_gateway/web/routes_appointments.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from provider_gateway.booking.models import AppointmentRequest
from provider_gateway.booking.service import BookingService
from provider_gateway.web.deps import current_business_id, get_booking_service

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


@router.get("/login")
async def login(service: BookingService = Depends(get_booking_service)):
    """Resolve the Booksy business and hand the dashboard its tokens."""
    result = await service.get_business_data()
    return JSONResponse(result.to_wire(), status_code=result.status_code)


@router.post("/list")
async def list_appointments(
    body: AppointmentRequest,
    business_id: int = Depends(current_business_id),
    service: BookingService = Depends(get_booking_service),
):
    result = await service.get_appointments(business_id, body.start, body.end, body.customer_name)
    return JSONResponse(result.to_wire(), status_code=result.status_code)
