"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags duplicates  # Same user hammering one event
  locust -f locustfile.py --tags edge        # Bad input and auth handling
  locust -f locustfile.py                    # All tests
"""

import random
import uuid
from locust import HttpUser, task, between, tag, events
from datetime import datetime, timezone, timedelta

# Shared state
EVENT_IDS = []
SHARED_EVENT_ID = None
PASSWORD = "test123"


def random_email():
    return f"load_{uuid.uuid4().hex[:10]}@example.com"


def register(client) -> dict:
    """Register a fresh user; return auth headers and the user id."""
    resp = client.post("/auth/register", json={
        "email": random_email(),
        "password": PASSWORD,
        "displayName": f"Load {random.randint(1, 99999)}",
    })
    if resp.status_code != 201:
        return {"headers": {}, "user_id": None}
    body = resp.json()
    return {
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
        "user_id": body["user"]["id"],
    }


def future_date(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: first user to start creates the shared event")
    print("=" * 60)


class DuplicateBookingUser(HttpUser):
    """
    TEST 1: Duplicates - every user fires repeated bookings and attendee
    registrations for the same shared event.

    Run: locust -f locustfile.py --tags duplicates -u 100 -r 50 --run-time 30s

    After test, verify no pair was stored twice:
      SELECT user_id, event_id, COUNT(*) FROM bookings GROUP BY 1, 2 HAVING COUNT(*) > 1;
      SELECT user_id, event_id, COUNT(*) FROM event_attendees GROUP BY 1, 2 HAVING COUNT(*) > 1;
    Both should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        auth = register(self.client)
        self.headers = auth["headers"]
        self.user_id = auth["user_id"]

        if self.headers and not SHARED_EVENT_ID:
            resp = self.client.post("/events", json={
                "title": "shared load test event",
                "date": future_date(),
                "location": "Test",
            }, headers=self.headers)
            if resp.status_code == 201:
                globals()["SHARED_EVENT_ID"] = resp.json()["id"]
                print(f"\n✓ Created shared event {SHARED_EVENT_ID}\n")

    @tag("duplicates")
    @task(3)
    def book_shared_event(self):
        """First call per user should be 201, every later one 409."""
        if not SHARED_EVENT_ID or not self.headers:
            return

        with self.client.post("/bookings",
            json={"eventId": SHARED_EVENT_ID},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("duplicates")
    @task(2)
    def register_as_attendee(self):
        """First call per user should be 200, every later one 400."""
        if not SHARED_EVENT_ID or not self.user_id:
            return

        with self.client.post(f"/events/{SHARED_EVENT_ID}/register/{self.user_id}",
            headers=self.headers,
            name="/events/{id}/register/{userId}",
            catch_response=True
        ) as resp:
            if resp.status_code in (200, 400):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class EdgeCaseUser(HttpUser):
    """
    TEST 2: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register(self.client)["headers"]

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        """Book non-existent event."""
        with self.client.post("/bookings",
            json={"eventId": str(uuid.uuid4())},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def malformed_event_id(self):
        with self.client.post("/bookings",
            json={"eventId": "not-a-uuid"},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/bookings",
            data="not json at all",
            headers={**self.headers, "Content-Type": "application/json"},
            catch_response=True
        ) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def foreign_booking(self):
        """Booking ids belonging to someone else must be 403, unknown ones 404."""
        with self.client.get(f"/bookings/{random.randint(1, 500)}",
            headers=self.headers,
            name="/bookings/{id}",
            catch_response=True
        ) as resp:
            self._expect(resp, 200, 403, 404)

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        with self.client.post("/bookings",
            json={"eventId": str(uuid.uuid4())},
            catch_response=True
        ) as resp:
            self._expect(resp, 401)

    @tag("edge")
    @task
    def garbage_token(self):
        with self.client.get("/auth/profile",
            headers={"Authorization": "Bearer not.a.token"},
            catch_response=True
        ) as resp:
            self._expect(resp, 401)


class RealisticUser(HttpUser):
    """
    TEST 3: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some bookings and attendee registrations
      - Rare creates
    """
    wait_time = between(1, 3)

    def on_start(self):
        auth = register(self.client)
        self.headers = auth["headers"]
        self.user_id = auth["user_id"]
        self.booking_ids = []

    @task(50)
    def browse_events(self):
        """Most common: browsing."""
        resp = self.client.get("/events", headers=self.headers)
        if resp.status_code == 200:
            for event in resp.json():
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/events/{random.choice(EVENT_IDS)}", headers=self.headers, name="/events/{id}")

    @task(10)
    def book_event(self):
        if EVENT_IDS and self.headers:
            resp = self.client.post("/bookings",
                json={"eventId": random.choice(EVENT_IDS), "notes": "load test"},
                headers=self.headers)
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])

    @task(5)
    def confirm_booking(self):
        if self.booking_ids:
            self.client.patch(f"/bookings/{random.choice(self.booking_ids)}",
                json={"status": "confirmed"},
                headers=self.headers,
                name="/bookings/{id}")

    @task(5)
    def attend_event(self):
        if EVENT_IDS and self.user_id:
            self.client.post(f"/events/{random.choice(EVENT_IDS)}/register/{self.user_id}",
                headers=self.headers,
                name="/events/{id}/register/{userId}")

    @task(3)
    def create_event(self):
        """Rare: create new event."""
        if self.headers:
            resp = self.client.post("/events",
                json={
                    "title": f"event {random.randint(1, 10000)}",
                    "description": "Test event",
                    "date": future_date(random.randint(1, 90)),
                    "location": "Venue",
                },
                headers=self.headers)
            if resp.status_code == 201:
                EVENT_IDS.append(resp.json()["id"])
