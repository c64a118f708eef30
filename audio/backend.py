# audio/backend.py
import itertools
import logging
import time
from collections import deque
from typing import Optional

import pygame

from audio.device import AUDIO_S8, NOT_OPEN, AudioSpec

log = logging.getLogger("tonequeue.backend")


class BackendError(Exception):
    pass


class AudioBackend:
    """
    平台音訊 API 的窄介面（SDL 風格）：
    - open_device(...) -> handle，0 代表失敗，原因由 get_last_error() 取得
    - queue_audio(...) -> 已排入的位元組數，負數代表失敗
    其餘控制呼叫在 handle 無效時丟 BackendError
    """
    def init_subsystem(self) -> int:
        raise NotImplementedError

    def quit_subsystem(self):
        raise NotImplementedError

    def open_device(self, name: Optional[str], spec: AudioSpec, allowed_changes: int = 0) -> int:
        raise NotImplementedError

    def pause_device(self, handle: int, paused: bool):
        raise NotImplementedError

    def queue_audio(self, handle: int, data: bytes) -> int:
        raise NotImplementedError

    def queued_size(self, handle: int) -> int:
        raise NotImplementedError

    def clear_queued(self, handle: int):
        raise NotImplementedError

    def close_device(self, handle: int):
        raise NotImplementedError

    def get_last_error(self) -> str:
        raise NotImplementedError

    def delay(self, ms: int):
        raise NotImplementedError


class PygameMixerBackend(AudioBackend):
    """
    SDL audio through pygame.mixer; one device (one mixer) at a time.
    pygame 的 Channel 只能排一個 Sound，其餘放在 _pending 依序補上（FIFO）
    """
    TOP_UP_MS = 10

    def __init__(self):
        self._ids = itertools.count(1)
        self._handle = NOT_OPEN
        self._channel = None
        self._pending = deque()
        self._last_error = ""

    def init_subsystem(self) -> int:
        passed, failed = pygame.init()
        log.debug("pygame.init: %d ok, %d failed", passed, failed)
        # pygame.init() starts the mixer with default settings; open_device sets our own
        if self._handle == NOT_OPEN and pygame.mixer.get_init():
            pygame.mixer.quit()
        return 0 if passed else -1

    def quit_subsystem(self):
        pygame.quit()

    def open_device(self, name, spec, allowed_changes=0):
        if self._handle != NOT_OPEN or pygame.mixer.get_init():
            self._last_error = "audio device already open"
            return NOT_OPEN
        size = -8 if spec.format == AUDIO_S8 else spec.format
        try:
            pygame.mixer.init(
                frequency=spec.sample_rate_hz, size=size, channels=spec.channels,
                buffer=spec.buffer_samples, devicename=name, allowedchanges=allowed_changes,
            )
            self._channel = pygame.mixer.Channel(0)
        except pygame.error as e:
            self._last_error = str(e) or pygame.get_error()
            self._channel = None
            return NOT_OPEN
        self._handle = next(self._ids)
        self._pending.clear()
        self._last_error = ""
        log.debug("mixer opened: %s", pygame.mixer.get_init())
        return self._handle

    def _require(self, handle: int):
        if handle == NOT_OPEN or handle != self._handle:
            raise BackendError(f"invalid audio device handle {handle}")

    def _top_up(self):
        if not self._pending: return
        if not self._channel.get_busy():
            self._channel.play(self._pending.popleft())
        if self._pending and self._channel.get_queue() is None:
            self._channel.queue(self._pending.popleft())

    def pause_device(self, handle, paused):
        self._require(handle)
        try:
            if paused: pygame.mixer.pause()
            else: pygame.mixer.unpause()
        except pygame.error as e:
            raise BackendError(str(e)) from e

    def queue_audio(self, handle, data):
        if handle == NOT_OPEN or handle != self._handle:
            self._last_error = f"invalid audio device handle {handle}"
            return -1
        try:
            self._pending.append(pygame.mixer.Sound(buffer=bytes(data)))
            self._top_up()
        except (pygame.error, MemoryError) as e:
            self._last_error = str(e)
            return -1
        return len(data)

    def queued_size(self, handle):
        """Bytes waiting behind the sound that is currently playing."""
        self._require(handle)
        self._top_up()
        waiting = list(self._pending)
        queued = self._channel.get_queue()
        if queued is not None:
            waiting.append(queued)
        return sum(len(s.get_raw()) for s in waiting)

    def clear_queued(self, handle):
        self._require(handle)
        self._pending.clear()
        self._channel.stop()

    def close_device(self, handle):
        self._require(handle)
        self._pending.clear()
        self._channel = None
        self._handle = NOT_OPEN
        pygame.mixer.quit()

    def get_last_error(self):
        return self._last_error or pygame.get_error()

    def delay(self, ms):
        remaining = int(ms)
        while remaining > 0:
            # 有待播的 Sound 時分段睡，醒來就補進 Channel
            step = min(remaining, self.TOP_UP_MS) if self._pending else remaining
            pygame.time.delay(step)
            remaining -= step
            if self._channel is not None:
                self._top_up()


class NullBackend(AudioBackend):
    """No sound card: accepts and discards audio, keeps real-time pacing."""
    def __init__(self):
        self._ids = itertools.count(1)
        self._open: set[int] = set()
        self.bytes_discarded = 0

    def init_subsystem(self):
        return 0

    def quit_subsystem(self):
        pass

    def open_device(self, name, spec, allowed_changes=0):
        h = next(self._ids)
        self._open.add(h)
        return h

    def _require(self, handle):
        if handle not in self._open:
            raise BackendError(f"invalid audio device handle {handle}")

    def pause_device(self, handle, paused):
        self._require(handle)

    def queue_audio(self, handle, data):
        if handle not in self._open:
            return -1
        self.bytes_discarded += len(data)
        return len(data)

    def queued_size(self, handle):
        self._require(handle)
        return 0

    def clear_queued(self, handle):
        self._require(handle)

    def close_device(self, handle):
        self._require(handle)
        self._open.discard(handle)

    def get_last_error(self):
        return ""

    def delay(self, ms):
        time.sleep(ms / 1000.0)


def make_backend(mute: bool = False) -> AudioBackend:
    return NullBackend() if mute else PygameMixerBackend()
