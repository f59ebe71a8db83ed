import random
from datetime import datetime, timezone

from conftest import booking_payload, make_user
from stats import Scope, aggregate


def events():
    return [
        {"date": "2024-03-07T10:00:00Z", "price": 50, "host": {"email": "h@x.com"}, "guest": {"email": "g@x.com"}},
        {"date": "2024-03-05T23:59:00Z", "price": 100, "host": {"email": "h@x.com"}, "guest": {"email": "g@x.com"}},
        {"date": "2024-03-05T01:00:00Z", "price": 30, "host": {"email": "o@x.com"}, "guest": {"email": "g@x.com"}},
        {"date": datetime(2024, 2, 28, 12, tzinfo=timezone.utc), "price": 20, "host": {"email": "h@x.com"}, "guest": {"email": "z@x.com"}},
    ]


def test_aggregate_sums_per_day_in_date_order():
    summary = aggregate(events())
    assert summary.total == 200
    assert summary.count == 4
    assert summary.chart_data == [["Day", "Sales"], ["28/2", 20], ["5/3", 130], ["7/3", 50]]


def test_aggregate_is_order_independent():
    shuffled = events()
    random.Random(7).shuffle(shuffled)
    assert aggregate(shuffled) == aggregate(events())


def test_aggregate_scoped_to_host():
    summary = aggregate(events(), scope=Scope(host_email="h@x.com"))
    assert summary.total == 170
    assert summary.count == 3
    assert summary.chart_data[1:] == [["28/2", 20], ["5/3", 100], ["7/3", 50]]


def test_aggregate_scoped_to_guest_with_label():
    summary = aggregate(events(), label="Spend", scope=Scope(guest_email="g@x.com"))
    assert summary.total == 180
    assert summary.chart_data[0] == ["Day", "Spend"]


def test_aggregate_of_nothing_has_header_only():
    summary = aggregate([])
    assert summary.total == 0
    assert summary.count == 0
    assert summary.chart_data == [["Day", "Sales"]]


def test_host_stats_after_booking(client, db, room, guest_headers, host_headers):
    client.post("/booking", json=booking_payload(room), headers=guest_headers)

    r = client.get("/host-stats", headers=host_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["totalSales"] == 100
    assert body["totalBookings"] == 1
    assert body["totalRooms"] == 1
    assert body["hostSince"]
    assert ["5/3", 100] in body["chartData"]


def test_guest_stats(client, db, room, guest_headers):
    client.post("/booking", json=booking_payload(room), headers=guest_headers)

    body = client.get("/guest-stats", headers=guest_headers).json()
    assert body["totalSpent"] == 100
    assert body["totalBookings"] == 1
    assert body["guestSince"]
    assert body["chartData"] == [["Day", "Spend"], ["5/3", 100]]


def test_admin_stats(client, db, room, guest_headers, admin_headers):
    make_user(db, "h@x.com", role="host")
    client.post("/booking", json=booking_payload(room), headers=guest_headers)
    client.post("/booking", json=booking_payload(room, transaction_id="pi_456", price=40), headers=guest_headers)

    body = client.get("/admin-stats", headers=admin_headers).json()
    assert body["totalUsers"] == 3
    assert body["totalRooms"] == 1
    assert body["totalBookings"] == 2
    assert body["totalSales"] == 140
    assert body["chartData"] == [["Day", "Sales"], ["5/3", 140]]


def test_stats_are_role_gated(client, guest_headers, host_headers):
    assert client.get("/admin-stats", headers=host_headers).status_code == 403
    assert client.get("/host-stats", headers=guest_headers).status_code == 403
    assert client.get("/guest-stats", headers=host_headers).status_code == 403
    assert client.get("/admin-stats").status_code == 401


def test_aggregate_prefers_stored_calendar_day():
    event = {"date": datetime(2024, 3, 4, 19, 30, tzinfo=timezone.utc), "day": "2024-03-05", "price": 100}
    assert aggregate([event]).chart_data == [["Day", "Sales"], ["5/3", 100]]


def test_offset_timestamp_is_bucketed_on_its_written_day(client, db, room, guest_headers, host_headers):
    client.post("/booking", json=booking_payload(room, date="2024-03-05T00:30:00+05:00"), headers=guest_headers)

    body = client.get("/host-stats", headers=host_headers).json()
    assert body["chartData"] == [["Day", "Sales"], ["5/3", 100]]


def test_stats_use_camel_case_keys(client, db, guest_headers):
    body = client.get("/guest-stats", headers=guest_headers).json()
    assert set(body) == {"totalBookings", "totalSpent", "guestSince", "chartData"}
