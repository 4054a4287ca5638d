from __future__ import annotations

from typing import Any


class SettingsError(RuntimeError):
    pass


class SettingsUnavailable(SettingsError):
    """Location settings APIs are missing (not an Android build, or no Play Services)."""


class SettingsCheckFailed(SettingsError):
    """
    The settings client rejected the location request.

    `resolution` is set when the user can fix the settings through a system
    dialog (on Android: the ResolvableApiException itself).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        resolution: Any = None,
        cause: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.resolution = resolution
        self.cause = cause

    @property
    def resolvable(self) -> bool:
        return self.resolution is not None


class SettingsChangeDeclined(SettingsError):
    def __init__(self, message: str = "User declined to change location settings.") -> None:
        super().__init__(message)


class SettingsChangeUnresolved(SettingsError):
    def __init__(self, result_code: int | None, message: str = "") -> None:
        super().__init__(message or f"Location settings dialog returned unexpected result code {result_code}.")
        self.result_code = result_code


class SettingsChangeTimedOut(SettingsChangeUnresolved):
    def __init__(self, timeout_s: float) -> None:
        super().__init__(None, f"No location settings result after {timeout_s:g}s.")
        self.timeout_s = timeout_s


class SettingsChangeCancelled(SettingsError):
    pass


class LocationPermissionDenied(SettingsError):
    def __init__(self, message: str = "Location permission was denied.") -> None:
        super().__init__(message)
