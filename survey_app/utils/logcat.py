from __future__ import annotations

import logging
from typing import Callable

from kivy.utils import platform


def _android_writer(tag: str) -> Callable[[str], None] | None:
    if platform != "android":
        return None
    try:
        from jnius import autoclass  # type: ignore

        Log = autoclass("android.util.Log")
    except Exception:
        return None

    def _write(msg: str) -> None:
        Log.d(tag, msg)

    return _write


def get_logger(tag: str) -> Callable[[str], None]:
    """
    Return a log function for `tag`.

    Writes to Android logcat when available; otherwise goes through the
    standard logging module under the same name. Never raises.
    """
    writer = _android_writer(tag)
    if writer is None:
        logger = logging.getLogger(tag)
        writer = logger.debug

    def _log(message: str) -> None:
        try:
            writer(str(message))
        except Exception:
            pass

    return _log
