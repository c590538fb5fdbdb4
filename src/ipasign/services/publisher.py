"""Public URLs for signed artifacts."""

from urllib.parse import quote

from ipasign.core.config import settings

OUTPUT_ROUTE = "/output"
MANIFEST_ROUTE = "/api/manifest"
INSTALL_SCHEME = "itms-services://?action=download-manifest&url="

# Characters encodeURIComponent leaves alone besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"


def download_url(file_name: str, domain: str | None = None) -> str:
    """Direct download URL served by the /output static mount."""
    base = domain if domain is not None else settings.public_domain
    return f"{base}{OUTPUT_ROUTE}/{quote(file_name)}"


def manifest_url(file_name: str, domain: str | None = None) -> str:
    base = domain if domain is not None else settings.public_domain
    return f"{base}{MANIFEST_ROUTE}/{quote(file_name)}"


def install_url(file_name: str, domain: str | None = None) -> str:
    """OTA install trigger pointing at the manifest endpoint for file_name."""
    return INSTALL_SCHEME + quote(manifest_url(file_name, domain), safe=_URI_COMPONENT_SAFE)
