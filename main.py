from __future__ import annotations

import os

from kivy.app import App
from kivy.lang import Builder
from kivy.resources import resource_add_path, resource_find
from kivy.uix.screenmanager import FadeTransition, ScreenManager

from screens.location_screen import LocationScreen
from survey_app.utils.android_location import (
    bind_activity_results,
    default_settings_checker,
    start_resolution,
)
from survey_app.utils.config import resolution_timeout_s
from survey_app.utils.settings_manager import SettingsChangeRequest, SettingsManager


class SurveyApp(App):
    title = "Survey"

    def build(self):
        # One settings manager for the whole app lifetime.
        self.settings_manager = SettingsManager(
            default_settings_checker(),
            resolution_timeout=resolution_timeout_s(),
        )
        bind_activity_results(self.settings_manager)
        self._unsubscribe_requests = self.settings_manager.subscribe_settings_change_requests(
            self._show_settings_dialog
        )

        base_dir = os.path.dirname(__file__)
        resource_add_path(base_dir)
        resource_add_path(os.path.join(base_dir, "kv"))
        kv_path = resource_find("kv/screens.kv") or os.path.join(base_dir, "kv", "screens.kv")
        Builder.load_file(kv_path)

        sm = ScreenManager(transition=FadeTransition())
        sm.add_widget(LocationScreen(name="location", settings_manager=self.settings_manager))
        sm.current = "location"
        return sm

    def _show_settings_dialog(self, request: SettingsChangeRequest) -> None:
        shown = start_resolution(
            request,
            on_error=lambda msg: self.settings_manager.cancel_pending(msg),
        )
        if not shown:
            self.settings_manager.cancel_pending("Location settings dialog is not available.")

    def on_stop(self):
        unsubscribe = getattr(self, "_unsubscribe_requests", None)
        if unsubscribe is not None:
            unsubscribe()
        manager = getattr(self, "settings_manager", None)
        if manager is not None:
            manager.cancel_pending("App stopped.")


if __name__ == "__main__":
    SurveyApp().run()
