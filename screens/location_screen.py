from __future__ import annotations

from kivy.properties import BooleanProperty, ObjectProperty, StringProperty
from kivy.uix.screenmanager import Screen

from survey_app.utils.android_location import enable_location, open_location_settings
from survey_app.utils.errors import (
    LocationPermissionDenied,
    SettingsChangeDeclined,
    SettingsChangeUnresolved,
    SettingsCheckFailed,
)


def describe_location_error(exc: BaseException) -> tuple[str, bool]:
    """
    Status text for a failed enable-location attempt, and whether the
    system settings screen is worth offering.
    """
    if isinstance(exc, LocationPermissionDenied):
        return "Location permission was denied.", False
    if isinstance(exc, SettingsChangeDeclined):
        return "Location was not turned on.", False
    if isinstance(exc, SettingsChangeUnresolved):
        return "Location settings did not respond. Try again.", False
    if isinstance(exc, SettingsCheckFailed):
        # Not fixable from a dialog; the system settings screen may still help.
        return f"Location settings cannot be changed here: {exc}", True
    return str(exc) or "Location settings check failed.", False


class LocationScreen(Screen):
    settings_manager = ObjectProperty(None, allownone=True)
    status_text = StringProperty("Location is needed to record where data is collected.")
    busy = BooleanProperty(False)
    can_open_settings = BooleanProperty(False)

    def enable_location(self) -> None:
        if self.busy or self.settings_manager is None:
            return
        self.busy = True
        self.can_open_settings = False
        self.status_text = "Checking location..."
        enable_location(self.settings_manager, on_success=self._on_enabled, on_error=self._on_error)

    def open_settings(self) -> None:
        open_location_settings()

    def _on_enabled(self) -> None:
        self.busy = False
        self.status_text = "Location is on."

    def _on_error(self, exc: BaseException) -> None:
        self.busy = False
        self.status_text, self.can_open_settings = describe_location_error(exc)
