"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test over-registration
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, events, tag, task

CONCURRENCY_CAPACITY = 10

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def random_email():
    return f"load_{random.randint(100000, 999999)}@test.com"


def random_name():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def future_iso(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: events with {CONCURRENCY_CAPACITY} seats are created on first user start")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users → 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      GET /api/events/{id}/stats
    totalRegistrations should be exactly 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.user_id = None
        resp = self.client.post("/api/users", json={"name": random_name(), "email": random_email()})
        if resp.status_code != 201:
            return
        self.user_id = resp.json()["data"]["id"]

        global CONCURRENCY_EVENT_ID
        if not CONCURRENCY_EVENT_ID:
            resp = self.client.post("/api/events", json={
                "title": "Concurrency Test Event",
                "dateTime": future_iso(),
                "location": "Test",
                "capacity": CONCURRENCY_CAPACITY,
            })
            if resp.status_code == 201:
                CONCURRENCY_EVENT_ID = resp.json()["data"]["id"]
                print(f"\n✓ Created event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_CAPACITY} seats\n")

    @tag("concurrency")
    @task
    def register_for_limited_event(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_EVENT_ID or not self.user_id:
            return

        with self.client.post(
            "/api/events/register",
            json={"eventId": CONCURRENCY_EVENT_ID, "userId": self.user_id},
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code in (400, 409):
                resp.success()  # Expected: full or already registered
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        if len(EVENT_IDS) < 20:
            resp = self.client.post("/api/events", json={
                "title": f"Throughput {random_name()}",
                "dateTime": future_iso(random.randint(1, 90)),
                "location": random.choice(["Hall A", "Hall B", "Arena"]),
                "capacity": random.randint(10, 500),
            })
            if resp.status_code == 201:
                EVENT_IDS.append(resp.json()["data"]["id"])

    @tag("throughput", "read")
    @task(10)
    def list_upcoming_cached(self):
        self.client.get("/api/events/upcoming", name="/api/events/upcoming [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_event_stats(self):
        if EVENT_IDS:
            event_id = random.choice(EVENT_IDS)
            self.client.get(f"/api/events/{event_id}/stats", name="/api/events/{id}/stats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        resp = self.client.post("/api/users", json={"name": random_name(), "email": random_email()})
        self.user_id = resp.json()["data"]["id"] if resp.status_code == 201 else 1

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/events/register",
            json={"eventId": 999999, "userId": self.user_id},
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def invalid_capacity(self):
        with self.client.post(
            "/api/events",
            json={"title": "Bad", "dateTime": future_iso(), "location": "Nowhere", "capacity": -5},
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def cancel_missing_registration(self):
        with self.client.post(
            "/api/events/cancel-registration",
            json={"eventId": 999999, "userId": self.user_id},
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))
