"""
Tests for the platform audio backends
"""

import numpy as np
import pygame
import pytest

from audio.backend import BackendError, NullBackend, PygameMixerBackend, make_backend
from audio.device import NOT_OPEN, AudioSpec
from audio.sink import AudioSink


class TestNullBackend:

    def test_lifecycle(self):
        b = NullBackend()
        h = b.open_device(None, AudioSpec())
        assert h != NOT_OPEN
        b.pause_device(h, False)
        assert b.queue_audio(h, b"\x00\x01") == 2
        assert b.bytes_discarded == 2
        b.close_device(h)
        assert b.queue_audio(h, b"\x00") == -1
        with pytest.raises(BackendError):
            b.pause_device(h, True)

    def test_fresh_handles(self):
        b = NullBackend()
        assert b.open_device(None, AudioSpec()) != b.open_device(None, AudioSpec())

    def test_make_backend(self):
        assert isinstance(make_backend(mute=True), NullBackend)
        assert isinstance(make_backend(), PygameMixerBackend)


class _FakeSound:
    def __init__(self, buffer):
        self.raw = bytes(buffer)

    def get_raw(self):
        return self.raw


class _FakeChannel:
    """Like pygame: one sound playing, one queued slot that queue() overwrites."""
    def __init__(self):
        self.playing, self.slot, self.played = None, None, []

    def get_busy(self):
        return self.playing is not None

    def play(self, sound):
        self.playing = sound
        self.played.append(sound.raw)

    def queue(self, sound):
        self.slot = sound

    def get_queue(self):
        return self.slot

    def finish(self):
        nxt = self.slot
        self.playing, self.slot = None, None
        if nxt is not None:
            self.play(nxt)

    def stop(self):
        self.playing, self.slot = None, None


class _FakeMixer:
    def __init__(self, fail=None):
        self.fail = fail
        self.inited = None
        self.channel = _FakeChannel()
        self.paused = None

    def get_init(self):
        return self.inited

    def init(self, **kw):
        if self.fail:
            raise pygame.error(self.fail)
        self.inited = kw

    def Channel(self, n):
        return self.channel

    def Sound(self, buffer):
        return _FakeSound(buffer)

    def pause(self):
        self.paused = True

    def unpause(self):
        self.paused = False

    def quit(self):
        self.inited = None


@pytest.fixture
def mixer(monkeypatch):
    m = _FakeMixer()
    monkeypatch.setattr(pygame, "mixer", m)
    return m


class TestPygameMixerBackend:

    def test_open_requests_signed_8bit(self, mixer):
        b = PygameMixerBackend()
        h = b.open_device("hw:0", AudioSpec(sample_rate_hz=22050))
        assert h != NOT_OPEN
        assert mixer.inited == dict(frequency=22050, size=-8, channels=1, buffer=1024,
                                    devicename="hw:0", allowedchanges=0)

    def test_open_after_pygame_init_started_default_mixer(self, mixer, monkeypatch):
        def fake_init():
            mixer.init(frequency=44100, size=-16, channels=2)
            return 5, 0
        monkeypatch.setattr(pygame, "init", fake_init)
        b = PygameMixerBackend()
        assert b.init_subsystem() == 0
        h = b.open_device(None, AudioSpec())
        assert h != NOT_OPEN, b.get_last_error()
        assert mixer.inited["size"] == -8 and mixer.inited["channels"] == 1

    def test_open_failure(self, monkeypatch):
        monkeypatch.setattr(pygame, "mixer", _FakeMixer(fail="No available audio device"))
        b = PygameMixerBackend()
        assert b.open_device(None, AudioSpec()) == NOT_OPEN
        assert b.get_last_error() == "No available audio device"

    def test_queue_plays_then_queues(self, mixer):
        b = PygameMixerBackend()
        h = b.open_device(None, AudioSpec())
        b.pause_device(h, False)
        assert mixer.paused is False
        assert b.queue_audio(h, b"\x01\x02") == 2
        assert b.queue_audio(h, b"\x03") == 1
        assert mixer.channel.played == [b"\x01\x02"]
        assert mixer.channel.get_queue().raw == b"\x03"

    def test_back_to_back_enqueues_keep_order(self, mixer):
        b = PygameMixerBackend()
        h = b.open_device(None, AudioSpec())
        for data in (b"\x01" * 4, b"\x02" * 3, b"\x03" * 2):
            assert b.queue_audio(h, data) == len(data)
        # first is playing, the other two wait in order
        assert b.queued_size(h) == 5
        mixer.channel.finish()
        assert b.queued_size(h) == 2
        mixer.channel.finish()
        assert b.queued_size(h) == 0
        assert mixer.channel.played == [b"\x01" * 4, b"\x02" * 3, b"\x03" * 2]

    def test_delay_feeds_pending_sounds(self, mixer, monkeypatch):
        slept = []
        monkeypatch.setattr(pygame.time, "delay", lambda ms: (slept.append(ms), mixer.channel.finish()))
        b = PygameMixerBackend()
        h = b.open_device(None, AudioSpec())
        for data in (b"\x01", b"\x02", b"\x03"):
            b.queue_audio(h, data)
        b.delay(25)
        assert sum(slept) == 25
        assert mixer.channel.played == [b"\x01", b"\x02", b"\x03"]

    def test_clear_drops_pending(self, mixer):
        b = PygameMixerBackend()
        h = b.open_device(None, AudioSpec())
        for data in (b"\x01", b"\x02", b"\x03"):
            b.queue_audio(h, data)
        b.clear_queued(h)
        assert b.queued_size(h) == 0
        assert not mixer.channel.get_busy()

    def test_invalid_handle(self, mixer):
        b = PygameMixerBackend()
        assert b.queue_audio(99, b"\x00") == -1
        with pytest.raises(BackendError):
            b.close_device(99)

    def test_close_and_reopen_gives_new_handle(self, mixer):
        b = PygameMixerBackend()
        h1 = b.open_device(None, AudioSpec())
        assert b.open_device(None, AudioSpec()) == NOT_OPEN
        b.close_device(h1)
        assert mixer.inited is None
        h2 = b.open_device(None, AudioSpec())
        assert h2 not in (NOT_OPEN, h1)


class TestPygameDummyDriver:

    def test_session_opens_and_queues_in_order(self, monkeypatch):
        monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
        monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
        sink = AudioSink(PygameMixerBackend())
        second = np.full(44100, 5, dtype=np.int8)
        with sink.session(AudioSpec()) as h:
            assert h != NOT_OPEN
            assert pygame.mixer.get_init()[:1] == (44100,)
            assert [sink.enqueue(h, second) for _ in range(3)] == [44100] * 3
            assert sink.queued_bytes(h) == 88200
        assert not pygame.mixer.get_init()
