import hashlib
import re

from tests.constants import URLs


def _upload(client, name="a.txt", data=b"0123456789", content_type="text/plain"):
    response = client.post(URLs.UPLOAD, files={"file": (name, data, content_type)})
    assert response.status_code == 200, response.text
    return response.json()


def test_end_to_end_upload_get_download_delete(client):
    record = _upload(client)

    assert record["id"] == 1
    assert record["size"] == 10
    assert record["originalName"] == "a.txt"
    assert record["mimeType"] == "text/plain"
    assert re.fullmatch(r"[0-9a-f]{64}", record["hash"])
    assert record["hash"] == hashlib.sha256(b"0123456789").hexdigest()
    assert record["uploadTimestamp"].endswith("Z")

    response = client.get(URLs.FILE.format(1))
    assert response.status_code == 200
    assert response.json() == record

    response = client.get(URLs.DOWNLOAD.format(1))
    assert response.status_code == 200
    assert response.content == b"0123456789"

    response = client.delete(URLs.FILE.format(1))
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.get(URLs.FILE.format(1))
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_upload_without_file(client):
    response = client.post(URLs.UPLOAD, data={"note": "no file here"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Bad Request",
        "code": "validation_error",
        "message": "No file uploaded",
    }


def test_upload_too_large_echoes_limit(client, upload_dir):
    response = client.post(
        URLs.UPLOAD, files={"file": ("big.bin", b"x" * 2048, "application/octet-stream")}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "limit_exceeded"
    assert data["maxSize"] == "1 KB"
    assert list(upload_dir.iterdir()) == []


def test_download_and_preview_dispositions(client):
    record = _upload(client, name="photo.png", data=b"\x89PNG fake", content_type="image/png")

    download = client.get(URLs.DOWNLOAD.format(record["id"]))
    assert download.headers["content-type"] == "image/png"
    assert download.headers["content-disposition"].startswith("attachment")
    assert "photo.png" in download.headers["content-disposition"]

    preview = client.get(URLs.PREVIEW.format(record["id"]))
    assert preview.status_code == 200
    assert preview.headers["content-disposition"].startswith("inline")
    assert preview.content == b"\x89PNG fake"


def test_download_missing_record(client):
    response = client.get(URLs.DOWNLOAD.format(999))

    assert response.status_code == 404
    assert response.json()["message"] == "File not found"


def test_download_blob_missing_on_disk(client, upload_dir):
    record = _upload(client)
    (upload_dir / record["storedName"]).unlink()

    response = client.get(URLs.DOWNLOAD.format(record["id"]))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"
    assert response.json()["message"] == "File not found on disk"


def test_rename(client):
    record = _upload(client)

    response = client.put(URLs.FILE.format(record["id"]), json={"newName": "b.txt"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["newName"] == "b.txt"
    renamed = client.get(URLs.FILE.format(record["id"])).json()
    assert renamed["originalName"] == "b.txt"
    assert renamed["storedName"] == record["storedName"]


def test_rename_missing_name(client):
    record = _upload(client)

    response = client.put(URLs.FILE.format(record["id"]), json={})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_rename_absent_id(client):
    response = client.put(URLs.FILE.format(999), json={"newName": "b.txt"})

    assert response.status_code == 404


def test_delete_absent_id(client):
    response = client.delete(URLs.FILE.format(999))

    assert response.status_code == 404


def test_bulk_delete(client):
    first = _upload(client, "one.txt")
    second = _upload(client, "two.txt")

    response = client.post(URLs.FILES_DELETE, json={"ids": [first["id"], 999, second["id"]]})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["deletedCount"] == 2
    assert data["failedCount"] == 1
    assert [(r["id"], r["success"]) for r in data["results"]] == [
        (first["id"], True),
        (999, False),
        (second["id"], True),
    ]
    assert client.get(URLs.FILES).json()["pagination"]["total"] == 0


def test_bulk_delete_without_ids(client):
    response = client.post(URLs.FILES_DELETE, json={"ids": []})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_verify(client, upload_dir):
    record = _upload(client)

    response = client.get(URLs.FILE_VERIFY.format(record["id"]))
    assert response.status_code == 200
    assert response.json() == {
        "id": record["id"],
        "hash": record["hash"],
        "actualHash": record["hash"],
        "valid": True,
    }

    (upload_dir / record["storedName"]).write_bytes(b"changed!!!")
    assert client.get(URLs.FILE_VERIFY.format(record["id"])).json()["valid"] is False


def test_list_files_pagination(client):
    for i in range(7):
        _upload(client, name=f"file-{i}.txt")

    response = client.get(URLs.FILES, params={"page": 3, "limit": 3})

    assert response.status_code == 200
    data = response.json()
    assert len(data["files"]) == 1
    assert data["pagination"] == {"page": 3, "limit": 3, "total": 7, "totalPages": 3}


def test_list_files_newest_first(client):
    ids = [_upload(client, name=f"file-{i}.txt")["id"] for i in range(3)]

    files = client.get(URLs.FILES).json()["files"]

    assert [f["id"] for f in files] == list(reversed(ids))


def test_list_files_filters(client):
    _upload(client, name="report.pdf", data=b"x" * 500, content_type="application/pdf")
    _upload(client, name="report.txt", data=b"x" * 500, content_type="text/plain")
    _upload(client, name="notes.pdf", data=b"x" * 500, content_type="application/pdf")
    _upload(client, name="report-tiny.pdf", data=b"x", content_type="application/pdf")

    response = client.get(
        URLs.FILES,
        params={"search": "report", "type": "pdf", "minSize": 100, "maxSize": 1000},
    )

    data = response.json()
    assert data["pagination"]["total"] == 1
    assert data["files"][0]["originalName"] == "report.pdf"


def test_list_files_date_range_includes_whole_end_day(client):
    record = _upload(client)
    day = record["uploadTimestamp"][:10]

    response = client.get(URLs.FILES, params={"startDate": day, "endDate": day})
    assert response.json()["pagination"]["total"] == 1

    response = client.get(URLs.FILES, params={"endDate": "2000-01-01"})
    assert response.json()["pagination"]["total"] == 0


def test_list_files_invalid_date(client):
    response = client.get(URLs.FILES, params={"startDate": "yesterday"})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_list_files_invalid_limit(client):
    response = client.get(URLs.FILES, params={"limit": 0})

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
