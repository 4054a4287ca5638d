from __future__ import annotations

import threading
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from kivy.clock import Clock
from kivy.event import EventDispatcher

from survey_app.utils.config import settings_request_code
from survey_app.utils.errors import (
    SettingsChangeCancelled,
    SettingsChangeDeclined,
    SettingsChangeTimedOut,
    SettingsChangeUnresolved,
    SettingsCheckFailed,
)
from survey_app.utils.logcat import get_logger

# android.app.Activity result codes.
RESULT_OK = -1
RESULT_CANCELED = 0

# LocationSettingsStatusCodes.RESOLUTION_REQUIRED (same as CommonStatusCodes).
RESOLUTION_REQUIRED = 6

_log = get_logger("SurveySettingsManager")


class SettingsChecker(Protocol):
    def check(
        self,
        location_request: Any,
        *,
        on_success: Callable[[], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        ...


@dataclass(frozen=True)
class SettingsChangeRequest:
    """
    Handed to the UI when the user can turn location on from a system dialog.

    The UI starts the dialog with `resolution` and `request_code`, then reports
    the activity result back through `SettingsManager.on_activity_result`.
    """

    resolution: Any = field(repr=False)
    request_code: int
    status_code: int | None = None


class _Cycle:
    __slots__ = ("future", "awaiting_result", "timeout_event")

    def __init__(self) -> None:
        self.future: Future = Future()
        self.awaiting_result = False
        self.timeout_event = None


class SettingsManager(EventDispatcher):
    """
    Asks the platform to enable location settings and relays the outcome.

    One instance per app, created by the composition root. Listeners receive
    `SettingsChangeRequest` objects through `subscribe_settings_change_requests`
    or a plain `bind(on_settings_change_request=...)`.
    """

    __events__ = ("on_settings_change_request",)

    def __init__(
        self,
        checker: SettingsChecker,
        *,
        clock: Any = None,
        request_code: int | None = None,
        resolution_timeout: float | None = None,
    ) -> None:
        super().__init__()
        self._checker = checker
        self._clock = clock if clock is not None else Clock
        if request_code is None:
            request_code = settings_request_code()
        self.request_code = int(request_code) & 0xFFFF
        self.resolution_timeout = resolution_timeout
        self._lock = threading.Lock()
        self._pending: dict[int, _Cycle] = {}
        self.activity_results_bound = False

    # -----------------------
    # Request channel
    # -----------------------
    def on_settings_change_request(self, request: SettingsChangeRequest) -> None:
        pass

    def subscribe_settings_change_requests(
        self, callback: Callable[[SettingsChangeRequest], None]
    ) -> Callable[[], None]:
        """
        Call `callback(request)` for every request emitted from now on.
        Returns a function that removes the subscription.
        """

        def _handler(_dispatcher, request: SettingsChangeRequest) -> None:
            try:
                callback(request)
            except Exception as e:
                _log(f"Settings change listener failed: {e}")

        self.bind(on_settings_change_request=_handler)
        subscribed = True

        def _unsubscribe() -> None:
            nonlocal subscribed
            with self._lock:
                if not subscribed:
                    return
                subscribed = False
            self.unbind(on_settings_change_request=_handler)

        return _unsubscribe

    # -----------------------
    # Settings check
    # -----------------------
    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self.request_code in self._pending

    def enable_location_settings(
        self,
        location_request: Any,
        *,
        on_success: Callable[[], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> Future:
        """
        Make sure the device location settings satisfy `location_request`.

        The returned future resolves with None once the settings are on, or
        fails with SettingsCheckFailed (checker error, unchanged),
        SettingsChangeDeclined, SettingsChangeUnresolved or
        SettingsChangeCancelled. Optional callbacks run on the Kivy main thread.
        """
        with self._lock:
            cycle = self._pending.get(self.request_code)
            joined = cycle is not None
            if cycle is None:
                cycle = _Cycle()
                self._pending[self.request_code] = cycle

        if joined:
            _log("Location settings change already in progress; joining it.")
        else:
            cycle.future.add_done_callback(lambda f, c=cycle: self._on_future_done(c, f))
            self._start_check(cycle, location_request)

        self._deliver(cycle.future, on_success, on_error)
        return cycle.future

    def _start_check(self, cycle: _Cycle, location_request: Any) -> None:
        _log("Checking location settings")

        def _success() -> None:
            self._clock.schedule_once(lambda *_: self._on_check_success(cycle), 0)

        def _failure(exc: BaseException) -> None:
            self._clock.schedule_once(lambda *_: self._on_check_failure(cycle, exc), 0)

        try:
            self._checker.check(location_request, on_success=_success, on_failure=_failure)
        except Exception as e:
            self._finish(cycle, e)

    def _on_check_success(self, cycle: _Cycle) -> None:
        _log("Location settings already enabled")
        self._finish(cycle)

    def _on_check_failure(self, cycle: _Cycle, exc: BaseException) -> None:
        if not _is_resolution_required(exc):
            _log(f"Unable to prompt user to enable location settings: {exc}")
            self._finish(cycle, exc)
            return

        with self._lock:
            if self._pending.get(self.request_code) is not cycle:
                return
            cycle.awaiting_result = True
            if self.resolution_timeout:
                timeout = self.resolution_timeout
                cycle.timeout_event = self._clock.schedule_once(
                    lambda *_: self._on_timeout(cycle, timeout), timeout
                )

        _log("Prompting user to enable location settings")
        request = SettingsChangeRequest(
            resolution=exc.resolution,
            request_code=self.request_code,
            status_code=exc.status_code,
        )
        try:
            self.dispatch("on_settings_change_request", request)
        except Exception as e:
            # Listeners bound straight through bind() are not wrapped; the cycle
            # stays pending until a result, the timeout or cancel_pending().
            _log(f"Settings change listener failed: {e}")

    def _on_timeout(self, cycle: _Cycle, timeout: float) -> None:
        with self._lock:
            if self._pending.get(self.request_code) is not cycle:
                return
            cycle.timeout_event = None
        _log(f"Location settings result not received after {timeout}s")
        self._finish(cycle, SettingsChangeTimedOut(timeout))

    # -----------------------
    # Activity result
    # -----------------------
    def on_activity_result(self, request_code: int, result_code: int) -> bool:
        """
        Feed an activity result into the pending settings change.
        Returns True if `request_code` belongs to this manager.
        """
        if request_code != self.request_code:
            return False
        _log(f"Location settings resultCode received: {result_code}")

        with self._lock:
            cycle = self._pending.get(request_code)
            if cycle is None or not cycle.awaiting_result:
                cycle = None
        if cycle is None:
            _log("No location settings change is waiting for a result.")
            return True

        if result_code == RESULT_OK:
            self._finish(cycle)
        elif result_code == RESULT_CANCELED:
            self._finish(cycle, SettingsChangeDeclined())
        else:
            self._finish(cycle, SettingsChangeUnresolved(result_code))
        return True

    def cancel_pending(self, reason: str = "") -> bool:
        with self._lock:
            cycle = self._pending.get(self.request_code)
        if cycle is None:
            return False
        _log("Cancelling pending location settings change")
        self._finish(cycle, SettingsChangeCancelled(reason or "Location settings change was cancelled."))
        return True

    # -----------------------
    # Completion
    # -----------------------
    def _release(self, cycle: _Cycle) -> None:
        with self._lock:
            if self._pending.get(self.request_code) is cycle:
                del self._pending[self.request_code]
            event, cycle.timeout_event = cycle.timeout_event, None
            cycle.awaiting_result = False
        if event is not None:
            event.cancel()

    def _finish(self, cycle: _Cycle, error: BaseException | None = None) -> None:
        # Release first so a late callback cannot reach a finished cycle.
        self._release(cycle)
        try:
            if error is None:
                cycle.future.set_result(None)
            else:
                cycle.future.set_exception(error)
        except InvalidStateError:
            _log("Location settings change was already resolved.")

    def _on_future_done(self, cycle: _Cycle, future: Future) -> None:
        if future.cancelled():
            self._release(cycle)

    def _deliver(
        self,
        future: Future,
        on_success: Callable[[], None] | None,
        on_error: Callable[[BaseException], None] | None,
    ) -> None:
        if on_success is None and on_error is None:
            return

        def _done(f: Future) -> None:
            if f.cancelled():
                error: BaseException | None = SettingsChangeCancelled("Location settings change was cancelled.")
            else:
                error = f.exception()
            if error is None:
                if on_success is not None:
                    self._clock.schedule_once(lambda *_: on_success(), 0)
            elif on_error is not None:
                self._clock.schedule_once(lambda *_: on_error(error), 0)

        future.add_done_callback(_done)


def _is_resolution_required(exc: BaseException) -> bool:
    return (
        isinstance(exc, SettingsCheckFailed)
        and exc.resolvable
        and exc.status_code == RESOLUTION_REQUIRED
    )
