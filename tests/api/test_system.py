from tests.constants import URLs


def test_index_lists_endpoints(client):
    response = client.get(URLs.INDEX)

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Local Storage Bucket API"
    assert data["limits"] == {"maxFileSize": "1 KB", "maxFilesPerUpload": 5}
    assert "POST /upload" in data["endpoints"]


def test_health(client):
    response = client.get(URLs.HEALTH)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["uptime"] >= 0
    assert data["version"] == "1.0.0"
    assert data["environment"] == "development"
    assert data["timestamp"].endswith("Z")


def test_unknown_route(client):
    response = client.get("/no/such/route")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Not Found",
        "code": "not_found",
        "message": "Route GET /no/such/route not found",
    }


def test_security_headers(client):
    response = client.get(URLs.HEALTH)

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["cross-origin-resource-policy"] == "cross-origin"


def test_cors_preflight(client):
    response = client.options(
        URLs.FILES,
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_stats(client):
    client.post(URLs.UPLOAD, files={"file": ("a.txt", b"x" * 1000, "text/plain")})
    client.post(URLs.UPLOAD, files={"file": ("b.txt", b"x" * 536, "text/plain")})
    client.post(URLs.UPLOAD, files={"file": ("c.png", b"x" * 512, "image/png")})

    response = client.get(URLs.STATS)

    assert response.status_code == 200
    assert response.json() == {
        "totalFiles": 3,
        "totalSize": 2048,
        "totalSizeFormatted": "2 KB",
        "filesByType": [
            {"mimeType": "text/plain", "count": 2},
            {"mimeType": "image/png", "count": 1},
        ],
    }


def test_stats_empty(client):
    response = client.get(URLs.STATS)

    assert response.json()["totalFiles"] == 0
    assert response.json()["totalSizeFormatted"] == "0 Bytes"


def test_health_reports_peak_memory(client):
    memory = client.get(URLs.HEALTH).json()["memory"]

    assert memory["max_rss"] > 1024 * 1024
    assert memory["max_rss_formatted"].endswith(("MB", "GB"))


def test_health_without_rusage(client, monkeypatch):
    def unavailable(who):
        raise OSError("getrusage not permitted")

    monkeypatch.setattr("storage_bucket.api.system.resource.getrusage", unavailable)

    response = client.get(URLs.HEALTH)

    assert response.status_code == 200
    assert response.json()["memory"] is None
