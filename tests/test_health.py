from app.platform.config import settings


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200

    payload = response.json()
    assert payload == {"status": "ok", "service": settings.APP_NAME}
    assert response.headers["access-control-allow-origin"] == "*"


def test_unknown_path(client):
    response = client.post("/nowhere", json={})
    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}
