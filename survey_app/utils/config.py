from __future__ import annotations

import os
import zlib


def _load_dotenv_if_present() -> None:
    """
    Load environment variables from a local `.env` file (dev convenience).

    Device builds should bake real values into the environment instead.
    Does nothing if python-dotenv is not installed.
    """
    try:
        from dotenv import load_dotenv  # type: ignore

        # Do not override existing environment variables.
        load_dotenv(override=False)
    except Exception:
        return


_load_dotenv_if_present()


# Values of com.google.android.gms.location.LocationRequest.PRIORITY_*.
PRIORITIES: dict[str, int] = {
    "high_accuracy": 100,
    "balanced": 102,
    "low_power": 104,
    "passive": 105,
}

DEFAULT_INTERVAL_MS = 10_000


def _default_request_code() -> int:
    # Android only delivers the lower 16 bits of a request code back to the activity.
    return zlib.crc32(b"survey_app.SettingsManager") & 0xFFFF


def settings_request_code() -> int:
    raw = (os.environ.get("LOCATION_SETTINGS_REQUEST_CODE") or "").strip()
    if raw:
        try:
            return int(raw, 0) & 0xFFFF
        except ValueError:
            pass
    return _default_request_code()


def resolution_timeout_s() -> float | None:
    """
    Seconds to wait for the resolution dialog result.

    None (the default) waits until the activity reports back.
    """
    raw = (os.environ.get("LOCATION_SETTINGS_TIMEOUT_S") or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def location_priority() -> int:
    raw = (os.environ.get("LOCATION_PRIORITY") or "").strip().lower()
    return PRIORITIES.get(raw, PRIORITIES["high_accuracy"])


def location_interval_ms() -> int:
    raw = (os.environ.get("LOCATION_INTERVAL_MS") or "").strip()
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_INTERVAL_MS
    return value if value > 0 else DEFAULT_INTERVAL_MS
