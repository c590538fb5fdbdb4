"""Tests for the health check endpoint."""


def test_health_endpoint_zsign_available(client):
    """Test health reports zsign and its version when it runs."""
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data == {
        "status": "ok",
        "zsign": "available",
        "version": "zsign version: 0.7 (test)",
    }


def test_health_endpoint_zsign_missing(client, service_settings, monkeypatch, tmp_path):
    """Test a missing zsign still answers 200 with status ok."""
    monkeypatch.setattr(service_settings, "ZSIGN_PATH", str(tmp_path / "missing-zsign"))

    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["zsign"] == "not found"
    assert data["version"] == "unknown"


def test_health_endpoint_zsign_failing(client, service_settings, failing_zsign, monkeypatch):
    monkeypatch.setattr(service_settings, "ZSIGN_PATH", str(failing_zsign.path))

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["zsign"] == "not found"


def test_index_page(client):
    """Test the landing page renders the upload form."""
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert 'name="ipa"' in response.text
    assert 'name="certificate"' in response.text
    assert 'name="provision"' in response.text
    assert 'name="bundleId"' in response.text


def test_cors_allowed_origin(client):
    response = client.get("/api/health", headers={"Origin": "https://sign.example.com"})

    assert response.headers.get("access-control-allow-origin") == "https://sign.example.com"


def test_cors_disallowed_origin(client):
    response = client.get("/api/health", headers={"Origin": "https://evil.example.net"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json()["success"] is False
