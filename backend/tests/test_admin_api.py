PATROL = {
    "name": "Ronda nocturna Miraflores",
    "patrolType": "vehicular",
    "resources": ["patrullero 12", "2 efectivos"],
    "scheduledAt": "2030-05-01T22:00:00",
    "duration": 4,
    "latitude": -12.12,
    "longitude": -77.03,
}


def test_patrols_are_authority_only(client, register):
    citizen = register()
    assert client.get("/api/patrols", headers=citizen["headers"]).status_code == 403
    assert client.post("/api/patrols", headers=citizen["headers"], json=PATROL).status_code == 403
    assert client.get("/api/patrols").status_code == 401


def test_patrol_validation(client, authority_headers):
    too_long = client.post("/api/patrols", headers=authority_headers, json={**PATROL, "duration": 13})
    assert too_long.status_code == 400
    assert too_long.json()["errors"][0]["field"] == "duration"

    no_resources = client.post("/api/patrols", headers=authority_headers, json={**PATROL, "resources": []})
    assert no_resources.status_code == 400


def test_patrol_lifecycle(client, authority_headers):
    created = client.post("/api/patrols", headers=authority_headers, json=PATROL)
    assert created.status_code == 201
    patrol = created.json()["data"]
    assert patrol["status"] == "scheduled"
    assert patrol["resources"] == PATROL["resources"]

    started = client.patch(
        f"/api/patrols/{patrol['uuid']}/status", headers=authority_headers, json={"status": "in_progress"}
    )
    assert started.json()["data"]["status"] == "in_progress"

    in_progress = client.get("/api/patrols", headers=authority_headers, params={"status": "in_progress"})
    assert patrol["uuid"] in [p["uuid"] for p in in_progress.json()["data"]["patrols"]]

    assert client.put(f"/api/patrols/{patrol['uuid']}", headers=authority_headers, json={}).status_code == 400
    moved = client.put(
        f"/api/patrols/{patrol['uuid']}", headers=authority_headers, json={"notes": "Reforzar Parque Kennedy"}
    )
    assert moved.json()["data"]["notes"] == "Reforzar Parque Kennedy"

    assert client.delete(f"/api/patrols/{patrol['uuid']}", headers=authority_headers).status_code == 200
    assert client.get(f"/api/patrols/{patrol['uuid']}", headers=authority_headers).status_code == 404


def test_general_stats(client, register):
    headers = register()["headers"]
    client.post("/api/reports", headers=headers, json={"incidentType": "Choque", "latitude": 62.0, "longitude": 62.0})

    data = client.get("/api/stats").json()["data"]
    assert data["reports"]["total"] >= 1
    assert data["reports"]["last24h"] >= 1
    assert data["reports"]["byStatus"]["pending"] >= 1
    assert len(data["reports"]["byType"]) <= 10
    assert data["activeUsers"] >= 3


def test_dashboard_and_trend(client, register, admin_headers):
    headers = register()["headers"]
    client.post(
        "/api/reports", headers=headers, json={"incidentType": "Semáforo malogrado", "latitude": 63.0, "longitude": 63.0}
    )
    assert client.get("/api/stats/dashboard", headers=headers).status_code == 403

    board = client.get("/api/stats/dashboard", headers=admin_headers).json()["data"]
    assert board["pendingReports"] >= 1
    assert board["reportsPerDay"]
    assert len(board["topZones"]) <= 5
    assert len(board["recentReports"]) <= 10

    trend = client.get("/api/stats/reports-trend", params={"days": 7}).json()["data"]
    assert trend["days"] == 7
    assert "Semáforo malogrado" in {t["type"] for t in trend["trend"]}
