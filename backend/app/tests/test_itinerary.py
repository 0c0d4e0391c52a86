"""
Tests for itinerary generation.
"""
import json
from datetime import date
import httpx
import pytest
from app.core.config import settings
from app.core.exceptions import GenerationFailure
from app.schemas.itinerary import ItineraryRequest
from app.services import itinerary_service

RealAsyncClient = httpx.AsyncClient

FORM = {
    "destination": "Lisbon",
    "start_date": "2026-09-10",
    "end_date": "2026-09-11",
    "budget": "low",
    "interests": ["food"],
}

PLAN = {
    "coordinates": {"lat": 38.72, "lng": -9.14},
    "itinerary": [
        {
            "day_number": 1,
            "date": "2026-09-10",
            "activities": [
                {"id": "d1-a1", "time": "09:00 AM", "activity": "Tram 28", "type": "transport",
                 "coordinates": {"lat": 38.71, "lng": -9.13}},
                {"time": "01:00 PM", "activity": "Time Out Market", "type": "dining"},
            ],
        },
        {
            "activities": [
                {"time": "10:00 AM", "activity": "Belem Tower", "type": "museum"},
            ],
        },
    ],
}


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def itinerary_api(monkeypatch):
    """Serve canned chat completions to the itinerary service."""
    state = {"status": 200, "body": completion(json.dumps(PLAN)), "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return httpx.Response(state["status"], json=state["body"])

    monkeypatch.setattr(settings, "ITINERARY_API_KEY", "sk-test")
    monkeypatch.setattr(
        itinerary_service.httpx, "AsyncClient",
        lambda **kwargs: RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)
    )
    return state


def test_generate_itinerary(client, itinerary_api):
    response = client.post("/api/itinerary/generate", json=FORM)
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["budget"] == "Under $500"
    assert data["coordinates"] == {"lat": 38.72, "lng": -9.14}
    assert len(data["itinerary"]) == 2
    first, second = data["itinerary"]
    assert [a["activity"] for a in first["activities"]] == ["Tram 28", "Time Out Market"]
    assert first["activities"][1]["id"] == "d1-a2"
    assert second["day_number"] == 2
    assert second["date"] == "2026-09-11"
    assert second["activities"][0]["type"] == "sightseeing"

    sent = json.loads(itinerary_api["requests"][0].content)
    assert itinerary_api["requests"][0].headers["Authorization"] == "Bearer sk-test"
    assert "Lisbon" in sent["messages"][1]["content"]
    assert "2-day" in sent["messages"][1]["content"]


def test_generate_itinerary_missing_fields(client, itinerary_api):
    response = client.post("/api/itinerary/generate", json={"destination": "Lisbon"})
    assert response.status_code == 400
    assert itinerary_api["requests"] == []


def test_generate_itinerary_upstream_error(client, itinerary_api):
    itinerary_api["status"] = 503
    itinerary_api["body"] = {"error": "overloaded"}
    response = client.post("/api/itinerary/generate", json=FORM)
    assert response.status_code == 500
    assert response.json()["status"] == "error"


def test_generate_itinerary_without_api_key(client, monkeypatch):
    monkeypatch.setattr(settings, "ITINERARY_API_KEY", "")
    response = client.post("/api/itinerary/generate", json=FORM)
    assert response.status_code == 500
    assert response.json()["message"] == "Itinerary generation is not configured"


def request_for(**overrides) -> ItineraryRequest:
    values = {"destination": "Lisbon", "start_date": date(2026, 9, 10), "end_date": date(2026, 9, 12)}
    values.update(overrides)
    return ItineraryRequest(**values)


def test_parse_itinerary_accepts_fenced_json():
    content = "```json\n" + json.dumps({"itinerary": [{"activities": []}]}) + "\n```"
    result = itinerary_service.parse_itinerary(content, request_for())
    assert result.itinerary[0].date == date(2026, 9, 10)
    assert result.budget == "$1,000 - $2,500"


@pytest.mark.parametrize("content", [
    "not json",
    json.dumps({"days": []}),
    json.dumps({"itinerary": []}),
    json.dumps({"itinerary": ["day one"]}),
    json.dumps({"itinerary": [{"day_number": 0, "date": "2026-09-10", "activities": []}]}),
])
def test_parse_itinerary_rejects_bad_output(content):
    with pytest.raises(GenerationFailure):
        itinerary_service.parse_itinerary(content, request_for())


def test_prompt_mentions_trip_details():
    prompt = itinerary_service.build_prompt(request_for(interests=["hiking", "wine"], budget="High"))
    assert "3-day trip to Lisbon" in prompt
    assert "hiking, wine" in prompt
    assert "$5,000 - $10,000" in prompt
