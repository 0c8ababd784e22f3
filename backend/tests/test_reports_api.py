import logging
import sqlite3

from app.zones import accumulator


def _report(client, headers, lat, lng, incident_type="Accidente de tránsito", **extra):
    resp = client.post(
        "/api/reports",
        headers=headers,
        json={"incidentType": incident_type, "latitude": lat, "longitude": lng, **extra},
    )
    assert resp.status_code == 201
    return resp.json()["data"]


def test_create_report_requires_auth(client):
    resp = client.post("/api/reports", json={"incidentType": "Robo", "latitude": 1.0, "longitude": 1.0})
    assert resp.status_code == 401


def test_report_rejects_bad_coordinates(client, register):
    headers = register()["headers"]
    resp = client.post(
        "/api/reports", headers=headers, json={"incidentType": "Robo", "latitude": 95.0, "longitude": 0.0}
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "latitude"


def test_reports_accumulate_into_one_heat_zone(client, register):
    headers = register()["headers"]
    created = _report(client, headers, 41.0, 41.0, severity="high")
    assert created["severity"] == "high"
    assert created["status"] == "pending"

    # ~55 m north, inside the merge radius
    _report(client, headers, 41.0005, 41.0, "ACCIDENTE múltiple")

    zones = client.get(
        "/api/heatmap", params={"lat": 41.0, "lng": 41.0, "radius": 1, "zoneType": "accident"}
    ).json()["data"]["zones"]
    assert len(zones) == 1
    assert zones[0]["incidentCount"] == 2
    assert zones[0]["intensity"] == 2


def test_far_and_other_type_reports_open_new_zones(client, register):
    headers = register()["headers"]
    _report(client, headers, 42.0, 42.0, "Robo de celular")
    _report(client, headers, 42.0, 42.0, "Bache peligroso")
    _report(client, headers, 42.01, 42.0, "Robo a mano armada")

    zones = client.get("/api/heatmap", params={"lat": 42.0, "lng": 42.0, "radius": 5}).json()["data"]["zones"]
    assert sorted(z["type"] for z in zones) == ["crime", "crime", "danger"]
    assert all(z["incidentCount"] == 1 for z in zones)


def test_anonymous_report_hides_reporter(client, register):
    account = register("Pedro Flores")
    visible = _report(client, account["headers"], 43.0, 43.0)
    hidden = _report(client, account["headers"], 43.0, 43.0, isAnonymous=True)

    shown = client.get(f"/api/reports/{visible['uuid']}").json()["data"]
    assert shown["reporterName"] == "Pedro Flores"
    anonymous = client.get(f"/api/reports/{hidden['uuid']}").json()["data"]
    assert anonymous["reporterName"] is None
    assert anonymous["reporterUuid"] is None


def test_get_report_counts_views_and_404(client, register):
    report = _report(client, register()["headers"], 44.0, 44.0)
    client.get(f"/api/reports/{report['uuid']}")
    second = client.get(f"/api/reports/{report['uuid']}").json()["data"]
    assert second["viewsCount"] == 2

    missing = client.get("/api/reports/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["success"] is False


def test_list_reports_filters_by_location_and_severity(client, register):
    headers = register()["headers"]
    _report(client, headers, 45.0, 45.0, severity="critical")
    _report(client, headers, 45.001, 45.0, severity="low")
    _report(client, headers, 46.0, 46.0, severity="critical")

    nearby = client.get("/api/reports", params={"lat": 45.0, "lng": 45.0, "radius": 2}).json()["data"]["reports"]
    assert len(nearby) == 2

    critical = client.get(
        "/api/reports", params={"lat": 45.0, "lng": 45.0, "radius": 2, "severity": "critical"}
    ).json()["data"]["reports"]
    assert [r["severity"] for r in critical] == ["critical"]


def test_my_reports(client, register):
    account = register()
    _report(client, account["headers"], 47.0, 47.0)
    _report(client, account["headers"], 47.0, 47.0, "Congestión vehicular")
    mine = client.get("/api/reports/user/my-reports", headers=account["headers"]).json()["data"]["reports"]
    assert len(mine) == 2


def test_status_change_notifies_author(client, register, authority_headers):
    author = register()
    report = _report(client, author["headers"], 48.0, 48.0)

    denied = client.put(f"/api/reports/{report['uuid']}/status", headers=author["headers"], json={"status": "resolved"})
    assert denied.status_code == 403

    bad = client.put(f"/api/reports/{report['uuid']}/status", headers=authority_headers, json={"status": "done"})
    assert bad.status_code == 400

    ok = client.put(f"/api/reports/{report['uuid']}/status", headers=authority_headers, json={"status": "confirmed"})
    assert ok.status_code == 200
    assert ok.json()["data"]["status"] == "confirmed"

    inbox = client.get("/api/users/notifications", headers=author["headers"]).json()["data"]
    assert inbox["unreadCount"] == 1
    note = inbox["notifications"][0]
    assert "confirmed" in note["message"]

    client.put(f"/api/users/notifications/{note['uuid']}/read", headers=author["headers"])
    after = client.get("/api/users/notifications", headers=author["headers"]).json()["data"]
    assert after["unreadCount"] == 0
    assert after["notifications"][0]["isRead"] is True


def test_pdf_export_for_authorities(client, register, authority_headers):
    citizen = register()
    _report(client, citizen["headers"], 49.0, 49.0)

    assert client.get("/api/reports/export/pdf", headers=citizen["headers"]).status_code == 403

    resp = client.get("/api/reports/export/pdf", headers=authority_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


class _UnavailableZoneStore:
    def find_nearby(self, *args, **kwargs):
        raise sqlite3.OperationalError("database is locked")


def test_report_survives_heat_zone_failure(client, register, monkeypatch, caplog):
    headers = register()["headers"]
    monkeypatch.setattr(accumulator, "store", _UnavailableZoneStore())

    with caplog.at_level(logging.ERROR):
        resp = client.post(
            "/api/reports", headers=headers, json={"incidentType": "Robo", "latitude": 50.0, "longitude": 50.0}
        )

    assert resp.status_code == 201
    assert "Heat zone update failed" in caplog.text
    stored = client.get(f"/api/reports/{resp.json()['data']['uuid']}")
    assert stored.status_code == 200

    monkeypatch.undo()
    zones = client.get("/api/heatmap", params={"lat": 50.0, "lng": 50.0, "radius": 1}).json()["data"]["zones"]
    assert zones == []
