from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from kivy.clock import Clock
from kivy.utils import platform

from survey_app.utils.config import location_interval_ms, location_priority
from survey_app.utils.android_permissions import ensure_location_permissions
from survey_app.utils.errors import LocationPermissionDenied, SettingsCheckFailed, SettingsUnavailable
from survey_app.utils.logcat import get_logger
from survey_app.utils.settings_manager import RESOLUTION_REQUIRED, SettingsChangeRequest, SettingsManager

_log = get_logger("SurveyLocation")

_API_EXCEPTION = "com.google.android.gms.common.api.ApiException"
_RESOLVABLE_API_EXCEPTION = "com.google.android.gms.common.api.ResolvableApiException"


@dataclass(frozen=True)
class LocationRequirements:
    """Desktop stand-in for a Java LocationRequest."""

    priority: int
    interval_ms: int


def _jnius():
    try:
        from jnius import autoclass, cast  # type: ignore
    except Exception as e:
        raise SettingsUnavailable(f"PyJNIus not available (not running on Android build?): {e}") from e
    return autoclass, cast


# ------------------------------------------------------------
# LOCATION REQUEST
# ------------------------------------------------------------
def build_location_request(
    priority: int | None = None,
    interval_ms: int | None = None,
    *,
    autoclass=None,
) -> Any:
    """
    Build the location requirements to check the device settings against.
    Java LocationRequest on Android, LocationRequirements elsewhere.
    """
    priority = location_priority() if priority is None else int(priority)
    interval_ms = location_interval_ms() if interval_ms is None else int(interval_ms)

    if autoclass is None:
        if platform != "android":
            return LocationRequirements(priority=priority, interval_ms=interval_ms)
        autoclass, _cast = _jnius()

    # play-services-location 21+ only has the Builder; older releases only create().
    try:
        Builder = autoclass("com.google.android.gms.location.LocationRequest$Builder")
        return Builder(priority, interval_ms).build()
    except Exception as e:
        _log(f"LocationRequest.Builder unavailable, falling back: {e}")
    LocationRequest = autoclass("com.google.android.gms.location.LocationRequest")
    request = LocationRequest.create()
    request.setPriority(priority)
    request.setInterval(interval_ms)
    return request


# ------------------------------------------------------------
# SETTINGS CHECKERS
# ------------------------------------------------------------
class DesktopSettingsChecker:
    """Non-Android builds have no location settings to enable."""

    def check(self, location_request, *, on_success, on_failure) -> None:
        on_success()


def _make_task_listeners(on_success: Callable[[Any], None], on_failure: Callable[[Any], None]):
    from jnius import PythonJavaClass, java_method  # type: ignore

    class _SuccessListener(PythonJavaClass):
        __javainterfaces__ = ["com/google/android/gms/tasks/OnSuccessListener"]
        __javacontext__ = "app"

        @java_method("(Ljava/lang/Object;)V")
        def onSuccess(self, result):
            on_success(result)

    class _FailureListener(PythonJavaClass):
        __javainterfaces__ = ["com/google/android/gms/tasks/OnFailureListener"]
        __javacontext__ = "app"

        @java_method("(Ljava/lang/Exception;)V")
        def onFailure(self, exc):
            on_failure(exc)

    return _SuccessListener(), _FailureListener()


def _java_class_names(obj) -> list[str]:
    names: list[str] = []
    try:
        cls = obj.getClass()
        while cls is not None:
            names.append(str(cls.getName()))
            cls = cls.getSuperclass()
    except Exception:
        pass
    return names


class AndroidSettingsChecker:
    """
    Runs SettingsClient.checkLocationSettings() and reports back through
    plain Python callbacks. Failures arrive as SettingsCheckFailed.
    """

    def __init__(self, *, autoclass=None, cast=None, activity=None, make_listeners=None) -> None:
        self._autoclass = autoclass
        self._cast = cast
        self._activity = activity
        self._make_listeners = make_listeners or _make_task_listeners
        # Java only holds weak references to Python proxies; keep them until they fire.
        self._live: dict[int, tuple[Any, Any]] = {}
        self._next_id = 0

    def _java(self):
        if self._autoclass is None or self._cast is None:
            self._autoclass, self._cast = _jnius()
        return self._autoclass, self._cast

    def check(self, location_request, *, on_success, on_failure) -> None:
        autoclass, _cast = self._java()
        act = self._activity
        if act is None:
            act = autoclass("org.kivy.android.PythonActivity").mActivity

        SettingsRequestBuilder = autoclass("com.google.android.gms.location.LocationSettingsRequest$Builder")
        LocationServices = autoclass("com.google.android.gms.location.LocationServices")
        settings_request = SettingsRequestBuilder().addLocationRequest(location_request).build()

        self._next_id += 1
        key = self._next_id

        def _ok(_result) -> None:
            self._live.pop(key, None)
            on_success()

        def _fail(exc) -> None:
            self._live.pop(key, None)
            on_failure(self.to_error(exc))

        listeners = self._make_listeners(_ok, _fail)
        self._live[key] = listeners
        try:
            task = LocationServices.getSettingsClient(act).checkLocationSettings(settings_request)
            task.addOnSuccessListener(listeners[0])
            task.addOnFailureListener(listeners[1])
        except Exception:
            self._live.pop(key, None)
            raise

    def to_error(self, exc) -> SettingsCheckFailed:
        _autoclass, cast = self._java()
        names = _java_class_names(exc)

        status_code = None
        if _API_EXCEPTION in names:
            try:
                status_code = int(cast(_API_EXCEPTION, exc).getStatusCode())
            except Exception:
                status_code = None

        resolution = None
        if _RESOLVABLE_API_EXCEPTION in names and status_code == RESOLUTION_REQUIRED:
            try:
                resolution = cast(_RESOLVABLE_API_EXCEPTION, exc)
            except Exception:
                resolution = None

        try:
            message = str(exc.getMessage() or "")
        except Exception:
            message = ""
        if not message:
            message = f"Location settings check failed (status={status_code})."
        return SettingsCheckFailed(message, status_code=status_code, resolution=resolution, cause=exc)


def default_settings_checker():
    if platform == "android":
        return AndroidSettingsChecker()
    return DesktopSettingsChecker()


def enable_location(
    manager: SettingsManager,
    location_request: Any = None,
    *,
    on_success: Callable[[], None],
    on_error: Callable[[BaseException], None],
    perm_api: tuple | None = None,
) -> None:
    """
    Get location permission, then make sure the device settings allow
    `location_request` (built from config when omitted). Exactly one of the
    callbacks runs, on the Kivy main thread.
    """

    def _on_permissions(ok: bool) -> None:
        if not ok:
            _log("Location permission denied; skipping settings check.")
            on_error(LocationPermissionDenied())
            return
        request = location_request if location_request is not None else build_location_request()
        manager.enable_location_settings(request, on_success=on_success, on_error=on_error)

    ensure_location_permissions(on_result=_on_permissions, perm_api=perm_api)


# ------------------------------------------------------------
# RESOLUTION DIALOG + ACTIVITY RESULT
# ------------------------------------------------------------
def start_resolution(
    request: SettingsChangeRequest,
    *,
    on_error: Callable[[str], None] | None = None,
    activity=None,
) -> bool:
    """
    Show the system "turn on location" dialog for `request`.
    Returns False when there is no Android activity to show it from.
    """
    if activity is None:
        if platform != "android":
            return False
        try:
            from jnius import autoclass  # type: ignore

            activity = autoclass("org.kivy.android.PythonActivity").mActivity
        except Exception as e:
            _log(f"No activity for location settings dialog: {e}")
            return False

    def _start() -> None:
        try:
            _log("Launching location settings resolution dialog.")
            request.resolution.startResolutionForResult(activity, request.request_code)
        except Exception as e:
            msg = str(e) or "Failed to show location settings dialog."
            _log(msg)
            if on_error is not None:
                Clock.schedule_once(lambda *_dt, msg=msg: on_error(msg), 0)

    if platform == "android":
        from android.runnable import run_on_ui_thread  # type: ignore

        _start = run_on_ui_thread(_start)
    _start()
    return True


def bind_activity_results(manager: SettingsManager, *, android_activity=None) -> bool:
    """
    Forward Android activity results for `manager.request_code` into the
    manager on the Kivy main thread. Binds at most once per manager.
    """
    if manager.activity_results_bound:
        return True
    if android_activity is None:
        if platform != "android":
            return False
        try:
            from android import activity as android_activity  # type: ignore
        except Exception as e:
            _log(f"Activity results unavailable in this build: {e}")
            return False

    def _on_activity_result(request_code: int, result_code: int, data) -> bool:
        if request_code != manager.request_code:
            return False
        Clock.schedule_once(lambda *_: manager.on_activity_result(request_code, result_code), 0)
        return True

    _log("Binding activity result listener.")
    android_activity.bind(on_activity_result=_on_activity_result)
    manager.activity_results_bound = True
    return True


def open_location_settings() -> None:
    """
    Best-effort: open Android Location settings so the user can enable GPS.
    No-op on non-Android platforms.
    """
    if platform != "android":
        return
    try:
        from jnius import autoclass  # type: ignore

        PythonActivity = autoclass("org.kivy.android.PythonActivity")
        Intent = autoclass("android.content.Intent")
        Settings = autoclass("android.provider.Settings")

        act = PythonActivity.mActivity
        intent = Intent(Settings.ACTION_LOCATION_SOURCE_SETTINGS)
        act.startActivity(intent)
    except Exception:
        # Never crash UI if Intent fails.
        return
