"""Pytest configuration and shared fixtures."""

import stat
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

FAKE_ZSIGN = """#!/bin/sh
echo "$@" >> "$(dirname "$0")/zsign_calls.log"
if [ "$1" = "--version" ]; then
    echo "zsign version: 0.7 (test)"
    exit 0
fi
out=""
while [ $# -gt 0 ]; do
    case "$1" in
        -o) out="$2"; shift 2 ;;
        *) shift ;;
    esac
done
printf 'signed-package' > "$out"
exit 0
"""

FAILING_ZSIGN = """#!/bin/sh
echo "$@" >> "$(dirname "$0")/zsign_calls.log"
echo ">>> Unable to load p12 certificate! Please check the password." >&2
exit 1
"""


def write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeZsign:
    """Handle on a fake zsign executable and the calls it received."""

    def __init__(self, path: Path):
        self.path = path
        self.log = path.parent / "zsign_calls.log"

    @property
    def calls(self) -> list[list[str]]:
        if not self.log.exists():
            return []
        return [line.split() for line in self.log.read_text().splitlines()]

    @property
    def sign_calls(self) -> list[list[str]]:
        return [call for call in self.calls if call[:1] != ["--version"]]


@pytest.fixture
def fake_zsign(tmp_path) -> FakeZsign:
    """A zsign stand-in that writes a small output file and exits 0."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return FakeZsign(write_script(bin_dir / "zsign", FAKE_ZSIGN))


@pytest.fixture
def failing_zsign(tmp_path) -> FakeZsign:
    """A zsign stand-in that rejects the certificate."""
    bin_dir = tmp_path / "bin-failing"
    bin_dir.mkdir()
    return FakeZsign(write_script(bin_dir / "zsign", FAILING_ZSIGN))


@pytest.fixture
def service_settings(monkeypatch, tmp_path, fake_zsign):
    """Point settings at per-test directories and the fake zsign."""
    from ipasign.core.config import settings

    upload_dir = tmp_path / "uploads"
    output_dir = tmp_path / "output"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(settings, "OUTPUT_DIR", str(output_dir))
    monkeypatch.setattr(settings, "DOMAIN", "https://sign.example.com")
    monkeypatch.setattr(settings, "ALLOWED_ORIGINS", "https://sign.example.com")
    monkeypatch.setattr(settings, "ZSIGN_PATH", str(fake_zsign.path))
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 10 * 1024 * 1024)
    monkeypatch.setattr(settings, "SIGN_TIMEOUT_SECONDS", None)
    return settings


@pytest.fixture
def client(service_settings):
    """Create test client for an app built against the test settings."""
    from ipasign.main import create_app

    return TestClient(create_app())


@pytest.fixture
def sign_files():
    """Multipart file parts for a valid signing request."""
    return {
        "ipa": ("MyApp.ipa", b"PK\x03\x04fake-ipa-content", "application/octet-stream"),
        "certificate": ("cert.p12", b"fake-p12-content", "application/x-pkcs12"),
        "provision": ("profile.mobileprovision", b"fake-profile", "application/octet-stream"),
    }


@pytest.fixture
def make_script():
    """Factory writing an executable shell script."""
    return write_script
