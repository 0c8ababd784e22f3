def _help_point(client, headers, lat, lng, **extra):
    body = {"name": "Comisaría", "type": "police_station", "latitude": lat, "longitude": lng, **extra}
    resp = client.post("/api/help-points", headers=headers, json=body)
    assert resp.status_code == 201
    return resp.json()["data"]


def test_help_point_crud(client, register, authority_headers):
    citizen = register()
    denied = client.post(
        "/api/help-points",
        headers=citizen["headers"],
        json={"name": "X", "type": "hospital", "latitude": 0, "longitude": 0},
    )
    assert denied.status_code == 403

    point = _help_point(client, authority_headers, 51.0, 51.0, is24h=True)
    assert point["is24h"] is True

    nothing = client.put(f"/api/help-points/{point['uuid']}", headers=authority_headers, json={})
    assert nothing.status_code == 400

    renamed = client.put(
        f"/api/help-points/{point['uuid']}", headers=authority_headers, json={"name": "Comisaría Central"}
    )
    assert renamed.json()["data"]["name"] == "Comisaría Central"

    assert client.delete(f"/api/help-points/{point['uuid']}", headers=authority_headers).status_code == 200
    assert client.get(f"/api/help-points/{point['uuid']}").status_code == 404


def test_help_points_ordered_by_distance(client, authority_headers):
    far = _help_point(client, authority_headers, 52.02, 52.0, name="Lejos")
    near = _help_point(client, authority_headers, 52.001, 52.0, name="Cerca", type="hospital")

    listed = client.get("/api/help-points", params={"lat": 52.0, "lng": 52.0, "radius": 5}).json()["data"]
    assert [p["uuid"] for p in listed["helpPoints"]] == [near["uuid"], far["uuid"]]
    assert listed["helpPoints"][0]["distanceKm"] < listed["helpPoints"][1]["distanceKm"]

    hospitals = client.get(
        "/api/help-points", params={"lat": 52.0, "lng": 52.0, "type": "hospital"}
    ).json()["data"]["helpPoints"]
    assert [p["name"] for p in hospitals] == ["Cerca"]

    types = client.get("/api/help-points/types").json()["data"]["types"]
    assert {"police_station", "serenazgo"} <= {t["id"] for t in types}
    assert all(set(t) == {"id", "name", "icon"} for t in types)


def test_safety_score_reflects_zones_and_help_points(client, register, authority_headers):
    clean = client.get("/api/stats/safety-score", params={"lat": 53.0, "lng": 53.0}).json()["data"]
    assert clean["safetyScore"] == 100
    assert clean["safetyLevel"] == "high"
    assert clean["recommendation"] == "Safe area"

    headers = register()["headers"]
    client.post("/api/reports", headers=headers, json={"incidentType": "Robo", "latitude": 53.0, "longitude": 53.0})
    _help_point(client, authority_headers, 53.002, 53.0)

    scored = client.get("/api/stats/safety-score", params={"lat": 53.0, "lng": 53.0}).json()["data"]
    assert scored["safetyScore"] == 98
    assert scored["details"] == {"dangerZones": 1, "crimeZones": 1, "accidentZones": 0, "helpPointsNearby": 1}


def test_safety_score_requires_coordinates(client):
    assert client.get("/api/stats/safety-score", params={"lat": 10}).status_code == 400


def test_calculate_same_point_route(client):
    resp = client.post(
        "/api/routes/calculate",
        json={"originLat": 54.0, "originLng": 54.0, "destinationLat": 54.0, "destinationLng": 54.0},
    )
    data = resp.json()["data"]["route"]
    assert set(data) == {
        "origin",
        "destination",
        "safetyScore",
        "safetyLevel",
        "distanceKm",
        "estimatedTimeMin",
        "dangerZones",
        "helpPointsNearby",
    }
    assert data["distanceKm"] == 0
    assert data["estimatedTimeMin"] == 0
    assert data["safetyScore"] == 100
    assert data["helpPointsNearby"] == []


def test_calculate_route_counts_shared_zone_once(client, register, authority_headers):
    headers = register()["headers"]
    client.post(
        "/api/reports", headers=headers, json={"incidentType": "Accidente", "latitude": 55.005, "longitude": 55.0}
    )
    _help_point(client, authority_headers, 55.0, 55.0, name="Serenazgo", type="serenazgo")

    data = client.post(
        "/api/routes/calculate",
        json={
            "originLat": 55.0,
            "originLng": 55.0,
            "originAddress": "Inicio",
            "destinationLat": 55.01,
            "destinationLng": 55.0,
        },
    ).json()["data"]["route"]
    assert data["dangerZones"] == 1
    assert data["safetyScore"] == 98
    assert data["distanceKm"] == 1.11
    assert data["estimatedTimeMin"] == 2
    assert data["origin"]["address"] == "Inicio"
    assert [p["name"] for p in data["helpPointsNearby"]] == ["Serenazgo"]


def test_saved_routes_are_owned(client, register):
    owner = register()
    other = register()

    saved = client.post(
        "/api/routes",
        headers=owner["headers"],
        json={
            "name": "Casa - Trabajo",
            "originLat": 56.0,
            "originLng": 56.0,
            "destinationLat": 56.0,
            "destinationLng": 56.0,
            "waypoints": [{"lat": 56.0, "lng": 56.0}],
        },
    )
    assert saved.status_code == 201
    route = saved.json()["data"]
    assert route["safetyScore"] == 100
    assert route["estimatedTimeMin"] == 0
    assert route["waypoints"] == [{"lat": 56.0, "lng": 56.0}]

    assert client.get("/api/routes", headers=owner["headers"], params={"favoritesOnly": True}).json()["data"][
        "routes"
    ] == []
    fav = client.put(f"/api/routes/{route['uuid']}/favorite", headers=owner["headers"], json={"isFavorite": True})
    assert fav.status_code == 200
    favorites = client.get("/api/routes", headers=owner["headers"], params={"favoritesOnly": True}).json()["data"]
    assert [r["uuid"] for r in favorites["routes"]] == [route["uuid"]]

    assert client.delete(f"/api/routes/{route['uuid']}", headers=other["headers"]).status_code == 404
    assert client.delete(f"/api/routes/{route['uuid']}", headers=owner["headers"]).status_code == 200
    assert client.get("/api/routes", headers=owner["headers"]).json()["data"]["routes"] == []


def test_saved_route_keeps_client_score(client, register):
    headers = register()["headers"]
    route = client.post(
        "/api/routes",
        headers=headers,
        json={
            "originLat": 57.0,
            "originLng": 57.0,
            "destinationLat": 57.0,
            "destinationLng": 57.0,
            "safetyScore": 40,
        },
    ).json()["data"]
    assert route["safetyScore"] == 40
    assert route["distanceKm"] == 0


def _alert(client, headers, **body):
    payload = {"title": "Aviso", "message": "Precaución", "alertType": "general", **body}
    resp = client.post("/api/alerts", headers=headers, json=payload)
    assert resp.status_code == 201
    return resp.json()["data"]


def test_alert_listing_rules(client, authority_headers):
    low = _alert(client, authority_headers, severity="low", latitude=58.0, longitude=58.0, radiusKm=1)
    critical = _alert(client, authority_headers, severity="critical", latitude=58.001, longitude=58.0)
    everywhere = _alert(client, authority_headers, severity="medium")
    far = _alert(client, authority_headers, latitude=59.0, longitude=59.0)
    expired = _alert(
        client, authority_headers, latitude=58.0, longitude=58.0, expiresAt="2000-01-01T00:00:00Z"
    )

    listed = client.get(
        "/api/alerts", params={"lat": 58.0, "lng": 58.0, "radius": 5, "limit": 100}
    ).json()["data"]["alerts"]
    uuids = [a["uuid"] for a in listed]
    assert {low["uuid"], critical["uuid"], everywhere["uuid"]} <= set(uuids)
    assert far["uuid"] not in uuids
    assert expired["uuid"] not in uuids
    assert uuids.index(critical["uuid"]) < uuids.index(everywhere["uuid"]) < uuids.index(low["uuid"])


def test_alert_update_and_deactivate(client, register, authority_headers):
    alert = _alert(client, authority_headers, alertType="weather", latitude=60.0, longitude=60.0)
    assert alert["type"] == "weather"
    assert "alertType" not in alert
    citizen = register()
    assert client.delete(f"/api/alerts/{alert['uuid']}", headers=citizen["headers"]).status_code == 403

    updated = client.put(f"/api/alerts/{alert['uuid']}", headers=authority_headers, json={"severity": "high"})
    assert updated.json()["data"]["severity"] == "high"

    client.delete(f"/api/alerts/{alert['uuid']}", headers=authority_headers)
    listed = client.get("/api/alerts", params={"type": "weather", "limit": 100}).json()["data"]["alerts"]
    assert alert["uuid"] not in [a["uuid"] for a in listed]
    assert client.get(f"/api/alerts/{alert['uuid']}").json()["data"]["isActive"] is False


def test_heatmap_summary_and_high_risk(client, register):
    headers = register()["headers"]
    for _ in range(7):
        client.post(
            "/api/reports", headers=headers, json={"incidentType": "Tráfico", "latitude": 61.0, "longitude": 61.0}
        )
    client.post("/api/reports", headers=headers, json={"incidentType": "Tráfico", "latitude": 61.02, "longitude": 61.0})

    summary = client.get("/api/heatmap/summary", params={"lat": 61.0, "lng": 61.0}).json()["data"]["summary"]
    assert summary == [
        {"type": "congestion", "zoneCount": 2, "totalIncidents": 8, "avgIntensity": 4.0, "maxIntensity": 7}
    ]

    high = client.get("/api/heatmap/high-risk", params={"lat": 61.0, "lng": 61.0}).json()["data"]["zones"]
    assert [z["intensity"] for z in high] == [7]


def test_type_catalogs_share_one_shape(client):
    alert_types = client.get("/api/alerts/types").json()["data"]["types"]
    assert [t["id"] for t in alert_types][:2] == ["accident", "congestion"]
    assert all(set(t) == {"id", "name", "icon"} for t in alert_types)

    zone_types = client.get("/api/heatmap/types").json()["data"]["types"]
    assert {t["id"] for t in zone_types} == {"crime", "accident", "congestion", "danger"}
    assert all(set(t) == {"id", "name", "color"} for t in zone_types)
