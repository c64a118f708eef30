import itertools
import time

import pytest

from audio.backend import AudioBackend, BackendError


class RecordingBackend(AudioBackend):
    """Fake platform audio API; records every call in order."""
    def __init__(self, open_error=None, fail_queue_at=(), real_delay=False):
        self.calls = []
        self.open_error = open_error
        self.fail_queue_at = set(fail_queue_at)
        self.real_delay = real_delay
        self._ids = itertools.count(1)
        self._open = set()
        self._queue_calls = 0
        self.last_error = ""

    def names(self):
        return [c[0] for c in self.calls]

    def count(self, name):
        return self.names().count(name)

    def init_subsystem(self):
        self.calls.append(("init",))
        return 0

    def quit_subsystem(self):
        self.calls.append(("quit",))

    def open_device(self, name, spec, allowed_changes=0):
        self.calls.append(("open", name, spec))
        if self.open_error:
            self.last_error = self.open_error
            return 0
        h = next(self._ids)
        self._open.add(h)
        return h

    def pause_device(self, handle, paused):
        self.calls.append(("pause", handle, paused))
        if handle not in self._open:
            raise BackendError("bad handle")

    def queue_audio(self, handle, data):
        self.calls.append(("queue", handle, bytes(data)))
        i = self._queue_calls
        self._queue_calls += 1
        if i in self.fail_queue_at or handle not in self._open:
            self.last_error = "Out of memory"
            return -1
        return len(data)

    def queued_size(self, handle):
        if handle not in self._open:
            raise BackendError("bad handle")
        return 0

    def clear_queued(self, handle):
        self.calls.append(("clear", handle))

    def close_device(self, handle):
        self.calls.append(("close", handle))
        if handle not in self._open:
            raise BackendError("bad handle")
        self._open.discard(handle)

    def get_last_error(self):
        return self.last_error

    def delay(self, ms):
        self.calls.append(("delay", ms))
        if self.real_delay:
            time.sleep(ms / 1000.0)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("TONEQUEUE_LOG_DIR", str(tmp_path / "logs"))
