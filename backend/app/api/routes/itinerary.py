"""
Itinerary generation route.
"""
from fastapi import APIRouter
from app.schemas.itinerary import ItineraryRequest
from app.services import itinerary_service
from app.core.utils import format_response

router = APIRouter(prefix="/itinerary", tags=["itinerary"])


@router.post("/generate")
async def generate_itinerary(request: ItineraryRequest):
    """Generate a day-by-day itinerary. No authentication required."""
    result = await itinerary_service.generate_itinerary(request)
    return format_response(result.model_dump(mode="json"), "Itinerary generated successfully")
