"""
HTTP tests against the FastAPI app with the session swapped for a test database.
"""

import pytest

MONDAY_ISO = "2031-03-03"


@pytest.fixture
def catalog(api):
    service = api.post("/services", json={"name": "Simple wash", "durationMin": 30, "price": 40}).json()
    client = api.post("/clients", json={"name": "Ana Souza", "phone": "+5511999990000"}).json()
    return service, client


def post_booking(api, service, client, when, **extra):
    body = {"serviceId": service["id"], "clientId": client["id"], "date": when}
    body.update(extra)
    return api.post("/appointments", json=body)


def test_health(api):
    r = api.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


class TestAvailabilityEndpoint:

    def test_open_day(self, api, catalog):
        service, _ = catalog

        r = api.get("/appointments/availability", params={"serviceId": service["id"], "date": MONDAY_ISO})

        assert r.status_code == 200
        data = r.json()
        assert data["serviceId"] == service["id"]
        assert data["serviceDuration"] == 30
        assert data["workingHours"]["start"].startswith("2031-03-03T08:00:00")
        assert data["workingHours"]["end"].startswith("2031-03-03T18:00:00")
        assert len(data["availableSlots"]) == 20
        assert data["availableSlots"][0].startswith("2031-03-03T08:00:00")

    def test_closed_day_has_no_working_hours(self, api, catalog):
        service, _ = catalog

        r = api.get("/appointments/availability", params={"serviceId": service["id"], "date": "2031-03-09"})

        assert r.status_code == 200
        assert r.json()["workingHours"] is None
        assert r.json()["availableSlots"] == []

    def test_booked_slot_disappears(self, api, catalog):
        service, client = catalog
        post_booking(api, service, client, "2031-03-03T10:00:00")

        r = api.get("/appointments/availability", params={"serviceId": service["id"], "date": MONDAY_ISO})

        slots = r.json()["availableSlots"]
        assert len(slots) == 19
        assert not any(s.startswith("2031-03-03T10:00:00") for s in slots)

    def test_unknown_service(self, api):
        r = api.get("/appointments/availability", params={"serviceId": 999, "date": MONDAY_ISO})
        assert r.status_code == 404

    def test_missing_params(self, api):
        r = api.get("/appointments/availability", params={"date": MONDAY_ISO})
        assert r.status_code == 422


class TestBookingEndpoints:

    def test_create(self, api, catalog):
        service, client = catalog

        r = post_booking(api, service, client, "2031-03-03T10:00:00", notes="Silver sedan")

        assert r.status_code == 201
        data = r.json()
        assert data["status"] == "SCHEDULED"
        assert data["durationMin"] == 30
        assert data["notes"] == "Silver sedan"
        assert data["date"].startswith("2031-03-03T10:00:00")
        assert data["payment"]["status"] == "PENDING"
        assert data["payment"]["amount"] == 40.0

    def test_aware_time_is_converted_to_business_time(self, api, catalog):
        service, client = catalog

        r = post_booking(api, service, client, "2031-03-03T13:00:00Z")

        assert r.status_code == 201
        assert r.json()["date"].startswith("2031-03-03T10:00:00")

    def test_taken_slot(self, api, catalog):
        service, client = catalog
        post_booking(api, service, client, "2031-03-03T10:00:00")

        r = post_booking(api, service, client, "2031-03-03T10:00:00")

        assert r.status_code == 400
        data = r.json()
        assert data["reason"] == "slot_unavailable"
        assert data["conflictingCount"] == 1
        assert "Retry-After" not in r.headers

    def test_closed_day(self, api, catalog):
        service, client = catalog

        r = post_booking(api, service, client, "2031-03-09T10:00:00")

        assert r.status_code == 400
        assert r.json()["reason"] == "day_closed"

    def test_misaligned_time(self, api, catalog):
        service, client = catalog

        r = post_booking(api, service, client, "2031-03-03T10:10:00")

        assert r.status_code == 422
        assert "30-minute" in r.json()["detail"]

    def test_unknown_client(self, api, catalog):
        service, _ = catalog

        r = post_booking(api, service, {"id": 999}, "2031-03-03T10:00:00")

        assert r.status_code == 404
        assert r.json()["detail"] == "Client not found"

    def test_get_and_list(self, api, catalog):
        service, client = catalog
        created = post_booking(api, service, client, "2031-03-03T10:00:00").json()
        post_booking(api, service, client, "2031-03-04T10:00:00")

        assert api.get(f"/appointments/{created['id']}").json()["id"] == created["id"]
        assert api.get("/appointments/999").status_code == 404
        assert len(api.get("/appointments").json()) == 2
        assert [a["id"] for a in api.get("/appointments", params={"date": MONDAY_ISO}).json()] == [created["id"]]

    def test_reschedule(self, api, catalog):
        service, client = catalog
        created = post_booking(api, service, client, "2031-03-03T10:00:00").json()
        post_booking(api, service, client, "2031-03-03T11:00:00")

        moved = api.patch(f"/appointments/{created['id']}", json={"date": "2031-03-03T12:00:00"})
        blocked = api.patch(f"/appointments/{created['id']}", json={"date": "2031-03-03T11:00:00"})

        assert moved.status_code == 200
        assert moved.json()["date"].startswith("2031-03-03T12:00:00")
        assert blocked.status_code == 400
        assert blocked.json()["reason"] == "slot_unavailable"

    def test_status_flow(self, api, catalog):
        service, client = catalog
        created = post_booking(api, service, client, "2031-03-03T10:00:00").json()
        url = f"/appointments/{created['id']}/status"

        assert api.patch(url, json={"status": "IN_PROGRESS"}).json()["status"] == "IN_PROGRESS"
        delivered = api.patch(url, json={"status": "DELIVERED"}).json()
        assert delivered["payment"]["status"] == "PAID"
        assert delivered["payment"]["paidAt"] is not None

        r = api.patch(url, json={"status": "SCHEDULED"})
        assert r.status_code == 422

    def test_unknown_status(self, api, catalog):
        service, client = catalog
        created = post_booking(api, service, client, "2031-03-03T10:00:00").json()

        r = api.patch(f"/appointments/{created['id']}/status", json={"status": "WAXED"})

        assert r.status_code == 422


class TestScheduleSettingsEndpoints:

    def test_defaults(self, api):
        data = api.get("/settings/schedule").json()

        assert data == {
            "workStartHour": 8,
            "workEndHour": 18,
            "workDays": [1, 2, 3, 4, 5, 6],
            "closedDates": [],
            "maxConcurrentBookings": 1,
            "multiWorkerEnabled": False,
        }

    def test_partial_update(self, api):
        r = api.put("/settings/schedule", json={"workDays": [4, 0, 1], "closedDates": ["2031-03-05", "2031-03-03"]})

        assert r.status_code == 200
        assert r.json()["workDays"] == [0, 1, 4]
        assert r.json()["closedDates"] == ["2031-03-03", "2031-03-05"]
        assert r.json()["workStartHour"] == 8

    def test_closed_date_blocks_availability(self, api, catalog):
        service, _ = catalog
        api.put("/settings/schedule", json={"closedDates": [MONDAY_ISO]})

        r = api.get("/appointments/availability", params={"serviceId": service["id"], "date": MONDAY_ISO})

        assert r.json()["workingHours"] is None
        assert r.json()["availableSlots"] == []

    def test_work_days_count_from_sunday(self, api, catalog):
        service, _ = catalog
        api.put("/settings/schedule", json={"workDays": [0]})

        monday = api.get("/appointments/availability", params={"serviceId": service["id"], "date": MONDAY_ISO})
        sunday = api.get("/appointments/availability", params={"serviceId": service["id"], "date": "2031-03-09"})

        assert monday.json()["availableSlots"] == []
        assert len(sunday.json()["availableSlots"]) == 20

    @pytest.mark.parametrize(
        "body",
        [
            {"workDays": []},
            {"workDays": [7]},
            {"workDays": [1, 1]},
            {"workStartHour": 18, "workEndHour": 8},
            {"workEndHour": 24},
            {"maxConcurrentBookings": 0},
            {"workStartHour": None},
            {"workEndHour": None},
            {"maxConcurrentBookings": None},
            {"multiWorkerEnabled": None},
        ],
    )
    def test_rejects_invalid(self, api, body):
        r = api.put("/settings/schedule", json=body)

        assert r.status_code == 422
        assert api.get("/settings/schedule").json()["workStartHour"] == 8


class TestCatalogEndpoints:

    def test_services(self, api):
        created = api.post("/services", json={"name": "Full wash", "durationMin": 60, "price": 90.5})

        assert created.status_code == 201
        assert created.json()["price"] == 90.5
        assert api.get(f"/services/{created.json()['id']}").json()["name"] == "Full wash"
        assert len(api.get("/services").json()) == 1
        assert api.get("/services/999").status_code == 404

    def test_service_needs_positive_duration(self, api):
        r = api.post("/services", json={"name": "Nothing", "durationMin": 0, "price": 10})
        assert r.status_code == 422

    def test_clients(self, api):
        body = {"name": "Ana Souza", "phone": "+5511999990000"}

        assert api.post("/clients", json=body).status_code == 201
        assert api.post("/clients", json=body).status_code == 409
        assert len(api.get("/clients").json()) == 1

    def test_workers(self, api):
        bruno = api.post("/workers", json={"name": "Bruno", "position": 1}).json()
        carla = api.post("/workers", json={"name": "Carla", "position": 0}).json()

        assert [w["name"] for w in api.get("/workers").json()] == ["Carla", "Bruno"]

        r = api.patch(f"/workers/{carla['id']}/deactivate")
        assert r.status_code == 200
        assert r.json()["active"] is False
        assert [w["id"] for w in api.get("/workers").json()] == [bruno["id"]]
