"""
Itinerary generation service using an OpenAI-compatible chat completions API.

The model is asked for a JSON document of days and activities, which is
validated against the trip schemas before being returned.
"""
import json
import logging
from datetime import timedelta
from typing import List
import httpx
from pydantic import ValidationError as SchemaValidationError
from app.core.config import settings
from app.core.exceptions import GenerationFailure
from app.models.trip import ActivityType
from app.schemas.itinerary import ItineraryRequest, ItineraryResponse
from app.schemas.trip import Coordinates, Day

logger = logging.getLogger(__name__)

ACTIVITY_TYPES = [activity_type.value for activity_type in ActivityType]

SYSTEM_PROMPT = (
    "You are a travel planner. Always respond with a single JSON object and nothing else."
)


def build_prompt(request: ItineraryRequest) -> str:
    """Build the user prompt for a day-by-day plan."""
    interests = ", ".join(request.interests) if request.interests else "general sightseeing"
    return f"""Plan a {request.days}-day trip to {request.destination}.

Start date: {request.start_date.isoformat()}
End date: {request.end_date.isoformat()}
Budget: {request.budget}
Interests: {interests}

Return JSON with this shape:
{{
  "coordinates": {{"lat": <number>, "lng": <number>}},
  "itinerary": [
    {{
      "day_number": 1,
      "date": "YYYY-MM-DD",
      "activities": [
        {{
          "id": "d1-a1",
          "time": "09:00 AM",
          "activity": "<title>",
          "type": "<one of: {', '.join(ACTIVITY_TYPES)}>",
          "location": "<place name>",
          "notes": "<short tip>",
          "coordinates": {{"lat": <number>, "lng": <number>}},
          "order": 1
        }}
      ]
    }}
  ]
}}

Include exactly one entry per day, 3 to 5 activities per day, and keep costs within the budget."""


def _strip_code_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_itinerary(content: str, request: ItineraryRequest) -> ItineraryResponse:
    """
    Parse the model output into validated days.

    Missing dates, ids and orders are filled in from the position of the
    entry; unknown activity types fall back to sightseeing.
    """
    try:
        document = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError as exc:
        logger.error(f"Itinerary response is not valid JSON: {exc}")
        raise GenerationFailure() from exc

    if not isinstance(document, dict) or not isinstance(document.get("itinerary"), list):
        logger.error("Itinerary response has no 'itinerary' list")
        raise GenerationFailure()

    days: List[Day] = []
    try:
        for index, raw_day in enumerate(document["itinerary"], start=1):
            if not isinstance(raw_day, dict):
                raise GenerationFailure()
            raw_day.setdefault("day_number", index)
            raw_day.setdefault("date", (request.start_date + timedelta(days=index - 1)).isoformat())
            activities = raw_day.get("activities") or []
            for position, activity in enumerate(activities, start=1):
                if not isinstance(activity, dict):
                    raise GenerationFailure()
                activity.setdefault("id", f"d{index}-a{position}")
                activity.setdefault("order", position)
                if activity.get("type") not in ACTIVITY_TYPES:
                    activity["type"] = ActivityType.SIGHTSEEING.value
            raw_day["activities"] = activities
            days.append(Day.model_validate(raw_day))
        coordinates = document.get("coordinates")
        coordinates = Coordinates.model_validate(coordinates) if coordinates else None
    except SchemaValidationError as exc:
        logger.error(f"Itinerary response failed validation: {exc}")
        raise GenerationFailure() from exc

    if not days:
        logger.error("Itinerary generation returned no days")
        raise GenerationFailure()

    return ItineraryResponse(
        destination=request.destination,
        start_date=request.start_date,
        end_date=request.end_date,
        budget=request.budget,
        interests=request.interests,
        coordinates=coordinates,
        itinerary=days
    )


async def generate_itinerary(request: ItineraryRequest) -> ItineraryResponse:
    """Generate a day-by-day itinerary for the requested trip."""
    api_key = settings.ITINERARY_API_KEY
    if not api_key:
        logger.error("ITINERARY_API_KEY is not configured. Cannot generate itinerary.")
        raise GenerationFailure("Itinerary generation is not configured")

    logger.info(f"Generating itinerary for {request.destination} ({request.days} days)")

    try:
        async with httpx.AsyncClient(timeout=settings.ITINERARY_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.ITINERARY_API_URL,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json"
                },
                json={
                    "model": settings.ITINERARY_MODEL,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": build_prompt(request)}
                    ],
                    "temperature": 0.7,
                    "response_format": {"type": "json_object"}
                }
            )
    except httpx.TimeoutException as exc:
        logger.error("Itinerary API request timed out.")
        raise GenerationFailure() from exc
    except httpx.HTTPError as exc:
        logger.error(f"Error calling itinerary API: {exc}", exc_info=True)
        raise GenerationFailure() from exc

    if response.status_code != 200:
        logger.error(f"Itinerary API error {response.status_code}: {response.text}")
        raise GenerationFailure()

    try:
        content = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.error(f"Unexpected itinerary API response: {exc}")
        raise GenerationFailure() from exc

    result = parse_itinerary(content or "", request)

    total_activities = sum(len(day.activities) for day in result.itinerary)
    with_coordinates = sum(
        1 for day in result.itinerary for activity in day.activities if activity.coordinates
    )
    logger.info(
        f"Itinerary stats: {len(result.itinerary)} days, {total_activities} activities, "
        f"{with_coordinates} with coordinates"
    )
    return result
