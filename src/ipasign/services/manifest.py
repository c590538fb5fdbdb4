"""OTA installation manifest generation."""

import plistlib
from typing import Any

from ipasign.core.config import settings

MANIFEST_MEDIA_TYPE = "application/xml"


def build_manifest(
    package_url: str,
    bundle_id: str | None = None,
    bundle_version: str | None = None,
    title: str | None = None,
) -> bytes:
    """Build an itms-services manifest plist for a single package.

    Metadata is not read from the package itself; unset fields fall back to
    the configured MANIFEST_* values.

    Args:
        package_url: Direct download URL of the signed .ipa
        bundle_id: Value for bundle-identifier
        bundle_version: Value for bundle-version
        title: Value for title

    Returns:
        UTF-8 XML property list
    """
    manifest: dict[str, Any] = {
        "items": [
            {
                "assets": [
                    {
                        "kind": "software-package",
                        "url": package_url,
                    }
                ],
                "metadata": {
                    "bundle-identifier": bundle_id or settings.MANIFEST_BUNDLE_ID,
                    "bundle-version": bundle_version or settings.MANIFEST_BUNDLE_VERSION,
                    "kind": "software",
                    "title": title or settings.MANIFEST_TITLE,
                },
            }
        ]
    }
    return plistlib.dumps(manifest, fmt=plistlib.FMT_XML, sort_keys=False)
