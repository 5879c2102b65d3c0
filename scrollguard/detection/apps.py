"""
Supported app registry.

Only apps listed here are tracked: sessions are opened, scored and turned
into SessionRecords for these packages alone. Each package belongs to an
app family, which is what the content classifier uses to name the
short-form variant ("Shorts" on any YouTube build, "Reels" on Instagram).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AppFamily(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    SNAPCHAT = "snapchat"
    LINKEDIN = "linkedin"


@dataclass(frozen=True)
class SupportedApp:
    package_name: str
    display_name: str
    family: AppFamily


SUPPORTED_APPS: dict[str, SupportedApp] = {
    app.package_name: app
    for app in [
        SupportedApp("com.instagram.android", "Instagram", AppFamily.INSTAGRAM),
        SupportedApp("com.google.android.youtube", "YouTube", AppFamily.YOUTUBE),
        SupportedApp("app.revanced.android.youtube", "YouTube", AppFamily.YOUTUBE),
        SupportedApp("app.rvx.android.youtube", "YouTube", AppFamily.YOUTUBE),
        SupportedApp("com.linkedin.android", "LinkedIn", AppFamily.LINKEDIN),
        SupportedApp("com.snapchat.android", "Snapchat", AppFamily.SNAPCHAT),
    ]
}


def is_supported(app_id: str | None) -> bool:
    return bool(app_id) and app_id in SUPPORTED_APPS


def app_family(app_id: str | None) -> AppFamily | None:
    app = SUPPORTED_APPS.get(app_id or "")
    return app.family if app else None


def display_name(app_id: str | None) -> str:
    app = SUPPORTED_APPS.get(app_id or "")
    return app.display_name if app else "this app"


def is_enabled(app_id: str, toggles: dict[str, bool] | None = None) -> bool:
    """Supported and not switched off in the per-app toggles."""
    if not is_supported(app_id):
        return False
    return (toggles or {}).get(app_id, True)
