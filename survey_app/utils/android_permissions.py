from __future__ import annotations

from typing import Callable

from kivy.clock import Clock
from kivy.utils import platform

from survey_app.utils.logcat import get_logger

_log = get_logger("SurveyPermissions")

COARSE_LOCATION = "android.permission.ACCESS_COARSE_LOCATION"
FINE_LOCATION = "android.permission.ACCESS_FINE_LOCATION"


def _get_android_perm_api():
    """
    Returns (check_permission, request_permissions) or (None, None).
    """
    if platform != "android":
        return None, None
    try:
        from android.permissions import check_permission, request_permissions  # type: ignore

        return check_permission, request_permissions
    except Exception:
        return None, None


def required_location_permissions() -> list[str]:
    return [COARSE_LOCATION, FINE_LOCATION]


def location_access_granted(granted: dict[str, bool]) -> bool:
    """
    Android 12+ lets the user pick "approximate" only. The settings check
    works with either grant, so coarse alone is enough.
    """
    return bool(granted.get(COARSE_LOCATION) or granted.get(FINE_LOCATION))


def ensure_location_permissions(
    *,
    on_result: Callable[[bool], None],
    perm_api: tuple | None = None,
) -> None:
    """
    Ask for location permissions unless some location access is already granted.
    Calls on_result(True/False) on the Kivy main thread.
    """
    check_permission, request_permissions = perm_api or _get_android_perm_api()
    if not check_permission or not request_permissions:
        # Desktop, or an older runtime-perms environment: proceed best-effort.
        Clock.schedule_once(lambda *_: on_result(True), 0)
        return

    perms = required_location_permissions()
    try:
        current = {p: bool(check_permission(p)) for p in perms}
    except Exception as e:
        _log(f"Permission check failed: {e}")
        current = {}

    if location_access_granted(current):
        Clock.schedule_once(lambda *_: on_result(True), 0)
        return

    def _cb(permissions, grants) -> None:
        try:
            ok = location_access_granted(
                {str(p): bool(g) for p, g in zip(permissions or [], grants or [])}
            )
        except Exception:
            ok = False
        _log(f"Location permission result: {ok}")
        Clock.schedule_once(lambda *_: on_result(ok), 0)

    try:
        _log("Requesting location permissions.")
        request_permissions(perms, _cb)
    except Exception as e:
        _log(f"Location permission request failed: {e}")
        Clock.schedule_once(lambda *_: on_result(False), 0)
