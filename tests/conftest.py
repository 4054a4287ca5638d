import os

# Keep Kivy quiet and away from sys.argv while under pytest.
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_LOG_MODE", "PYTHON")

import pytest


class FakeEvent:
    def __init__(self, callback, due):
        self.callback = callback
        self.due = due
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Stands in for kivy.clock.Clock; callbacks run only on tick()."""

    def __init__(self):
        self.now = 0.0
        self.events = []

    def schedule_once(self, callback, timeout=0):
        event = FakeEvent(callback, self.now + (timeout or 0))
        self.events.append(event)
        return event

    def tick(self, dt=0.0):
        self.now += dt
        while True:
            due = [e for e in self.events if not e.cancelled and e.due <= self.now]
            if not due:
                break
            for event in due:
                self.events.remove(event)
                event.callback(0)
        self.events = [e for e in self.events if not e.cancelled]


class FakeChecker:
    def __init__(self):
        self.calls = []

    def check(self, location_request, *, on_success, on_failure):
        self.calls.append((location_request, on_success, on_failure))

    def succeed(self, index=-1):
        self.calls[index][1]()

    def fail(self, exc, index=-1):
        self.calls[index][2](exc)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def checker():
    return FakeChecker()
