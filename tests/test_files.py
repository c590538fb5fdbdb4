"""Tests for the signed artifact listing and deletion endpoints."""

import os
from pathlib import Path


def _make_artifact(output_dir: Path, name: str, content: bytes, mtime: float) -> Path:
    path = output_dir / name
    path.write_bytes(content)
    os.utime(path, (mtime, mtime))
    return path


def test_list_files_empty(client):
    response = client.get("/api/files")

    assert response.status_code == 200
    assert response.json() == {"success": True, "files": []}


def test_list_files_newest_first(client, service_settings):
    """Test artifacts are returned newest first with size and download URL."""
    output_dir = Path(service_settings.OUTPUT_DIR)
    _make_artifact(output_dir, "Old_signed_1.ipa", b"a" * 10, 1_700_000_000)
    _make_artifact(output_dir, "New_signed_3.ipa", b"c" * 30, 1_700_000_200)
    _make_artifact(output_dir, "Mid_signed_2.ipa", b"b" * 20, 1_700_000_100)

    response = client.get("/api/files")

    assert response.status_code == 200
    files = response.json()["files"]
    assert [f["name"] for f in files] == [
        "New_signed_3.ipa",
        "Mid_signed_2.ipa",
        "Old_signed_1.ipa",
    ]
    assert files[0]["size"] == 30
    assert files[0]["downloadUrl"] == "https://sign.example.com/output/New_signed_3.ipa"
    assert "created" in files[0]


def test_list_files_only_ipa(client, service_settings):
    """Test non-package files in the output directory are ignored."""
    output_dir = Path(service_settings.OUTPUT_DIR)
    _make_artifact(output_dir, "App_signed_1.ipa", b"ipa", 1_700_000_000)
    _make_artifact(output_dir, "notes.txt", b"txt", 1_700_000_000)
    (output_dir / "nested.ipa").mkdir()

    response = client.get("/api/files")

    assert [f["name"] for f in response.json()["files"]] == ["App_signed_1.ipa"]


def test_delete_file(client, service_settings):
    """Test deleting an artifact removes it from disk and from the listing."""
    output_dir = Path(service_settings.OUTPUT_DIR)
    path = _make_artifact(output_dir, "App_signed_1.ipa", b"ipa", 1_700_000_000)

    response = client.delete("/api/files/App_signed_1.ipa")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    assert not path.exists()
    assert client.get("/api/files").json()["files"] == []


def test_delete_nonexistent_file(client):
    response = client.delete("/api/files/Ghost_signed_1.ipa")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "File not found"}


def test_delete_rejects_traversal_name(client, service_settings, tmp_path):
    """Test names that could escape the output directory are refused."""
    victim = tmp_path / "victim.ipa"
    victim.write_bytes(b"keep me")

    response = client.delete("/api/files/..victim.ipa")

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert victim.exists()


def test_delete_encoded_slash_does_not_escape(client, tmp_path):
    victim = tmp_path / "victim.ipa"
    victim.write_bytes(b"keep me")

    response = client.delete("/api/files/..%2Fvictim.ipa")

    assert response.status_code in (400, 404)
    assert victim.exists()


def test_signed_then_listed_then_deleted(client, sign_files):
    """Test the sign, list, delete round through the public API."""
    file_name = client.post("/api/sign", files=sign_files).json()["data"]["fileName"]

    names = [f["name"] for f in client.get("/api/files").json()["files"]]
    assert names == [file_name]

    assert client.delete(f"/api/files/{file_name}").status_code == 200
    assert client.get("/api/files").json()["files"] == []
    assert client.delete(f"/api/files/{file_name}").status_code == 404
