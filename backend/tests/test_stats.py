"""
Tests for event capacity statistics.
"""

import pytest
from httpx import AsyncClient

from event_manager.models import Event
from event_manager.services.statistics_service import compute_stats, percentage_filled


@pytest.mark.asyncio
async def test_stats_three_of_ten(client: AsyncClient, make_event, make_user):
    event = await make_event(title="Workshop", capacity=10)
    for _ in range(3):
        user = await make_user()
        response = await client.post(
            "/api/events/register", json={"eventId": event.id, "userId": user.id}
        )
        assert response.status_code == 201

    response = await client.get(f"/api/events/{event.id}/stats")
    assert response.status_code == 200
    assert response.json()["data"] == {
        "eventId": event.id,
        "title": "Workshop",
        "capacity": 10,
        "totalRegistrations": 3,
        "remainingCapacity": 7,
        "percentageFilled": 30.0,
    }


@pytest.mark.asyncio
async def test_stats_empty_event(client: AsyncClient, test_event):
    data = (await client.get(f"/api/events/{test_event.id}/stats")).json()["data"]
    assert data["totalRegistrations"] == 0
    assert data["remainingCapacity"] == 100
    assert data["percentageFilled"] == 0.0


@pytest.mark.asyncio
async def test_stats_not_found(client: AsyncClient):
    response = await client.get("/api/events/99999/stats")
    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"


@pytest.mark.parametrize(
    "total,capacity,expected",
    [
        (1, 3, 33.33),
        (2, 3, 66.67),
        (1, 8, 12.5),
        (1, 1000, 0.1),
        (1000, 1000, 100.0),
    ],
)
def test_percentage_filled_rounds_half_up(total, capacity, expected):
    assert percentage_filled(total, capacity) == expected


def test_remaining_never_negative():
    """Rows left over from before a capacity cut do not produce negative remaining."""
    event = Event(id=1, title="Shrunk", capacity=2)
    stats = compute_stats(event, total=5)
    assert stats.remaining_capacity == 0
    assert stats.percentage_filled == 250.0
