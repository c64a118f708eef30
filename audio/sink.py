# audio/sink.py
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Set

import numpy as np

from audio.backend import AudioBackend, BackendError
from audio.device import (
    NOT_OPEN, AudioDeviceHandle, AudioSpec, DeviceControlError, DeviceOpenError, QueueError,
)
from audio.synth import to_bytes

log = logging.getLogger("tonequeue.sink")


class AudioSink:
    """
    Owns audio output devices opened through a backend.

    Handles only go open -> closed. close() is a no-op on the sentinel or an
    already-closed handle; session() guarantees exactly one close per
    successful open on every exit path.
    """
    def __init__(self, backend: AudioBackend):
        self.backend = backend
        self._open: Dict[AudioDeviceHandle, AudioSpec] = {}
        self._closed: Set[AudioDeviceHandle] = set()

    def open(self, device_name: Optional[str], spec: AudioSpec) -> AudioDeviceHandle:
        handle = self.backend.open_device(device_name, spec, 0)
        if handle == NOT_OPEN:
            raise DeviceOpenError("failed to open audio device", self.backend.get_last_error())
        self._open[handle] = spec
        log.info("opened audio device %d (%s, %d Hz, %d ch)",
                 handle, device_name or "default", spec.sample_rate_hz, spec.channels)
        return handle

    def is_open(self, handle: AudioDeviceHandle) -> bool:
        return handle in self._open

    def _spec(self, handle: AudioDeviceHandle) -> AudioSpec:
        try:
            return self._open[handle]
        except KeyError:
            raise DeviceControlError(f"audio device {handle} is not open") from None

    def set_paused(self, handle: AudioDeviceHandle, paused: bool):
        self._spec(handle)
        try:
            self.backend.pause_device(handle, paused)
        except BackendError as e:
            raise DeviceControlError("pause failed", str(e)) from e

    def enqueue(self, handle: AudioDeviceHandle, buffer: np.ndarray) -> int:
        """Append one PCM buffer to the device queue; returns bytes queued."""
        spec = self._open.get(handle)
        if spec is None:
            raise QueueError(f"audio device {handle} is not open", -1)
        data = to_bytes(buffer, spec.channels)
        queued = self.backend.queue_audio(handle, data)
        if queued < 0:
            raise QueueError("queue_audio failed", queued, self.backend.get_last_error())
        return queued

    def queued_bytes(self, handle: AudioDeviceHandle) -> int:
        self._spec(handle)
        try:
            return self.backend.queued_size(handle)
        except BackendError as e:
            raise DeviceControlError("queued_size failed", str(e)) from e

    def clear(self, handle: AudioDeviceHandle):
        self._spec(handle)
        try:
            self.backend.clear_queued(handle)
        except BackendError as e:
            raise DeviceControlError("clear_queued failed", str(e)) from e

    def wait(self, duration_ms: int):
        # 固定延遲，不確認裝置佇列是否播完
        if duration_ms > 0:
            self.backend.delay(duration_ms)

    def close(self, handle: AudioDeviceHandle):
        if handle == NOT_OPEN or handle in self._closed:
            return
        self._spec(handle)
        del self._open[handle]
        self._closed.add(handle)
        try:
            self.backend.close_device(handle)
        except BackendError as e:
            raise DeviceControlError("close failed", str(e)) from e
        log.info("closed audio device %d", handle)

    @contextmanager
    def session(self, spec: AudioSpec, device_name: Optional[str] = None) -> Iterator[AudioDeviceHandle]:
        """init -> open -> unpause ... close -> quit, teardown on every path."""
        status = self.backend.init_subsystem()
        if status < 0:
            log.warning("audio subsystem init reported %d: %s", status, self.backend.get_last_error())
        handle = NOT_OPEN
        try:
            handle = self.open(device_name, spec)
            self.set_paused(handle, False)
            yield handle
        finally:
            try:
                self.close(handle)
            except DeviceControlError as e:
                log.error("%s", e)
            self.backend.quit_subsystem()
