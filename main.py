# main.py
import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from utils.crashlog import log_dir, log_exception, setup_crashlog

from app import App
from config import AppConfig, AudioConfig, PlaybackConfig

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _init_logging(level: str = "INFO"):
    if logging.getLogger().handlers:
        return

    logging.basicConfig(level=level, format=FORMAT, encoding="utf-8")
    try:
        fh = RotatingFileHandler(os.path.join(log_dir(), "app.log"),
                                 maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError as e:
        logging.warning("file logging disabled: %s", e)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tonequeue", description="Play a tune as 8-bit sine PCM.")
    ap.add_argument('score', nargs='?', default=None, help='score file (.json or .mid); default: built-in riff')
    ap.add_argument('--device', default=None, help='output device name (default device if omitted)')
    ap.add_argument('--rate', type=int, default=44100, help='sample rate in Hz')
    ap.add_argument('--channels', type=int, default=1)
    ap.add_argument('--buffer', type=int, default=1024, help='device buffer size in samples')
    ap.add_argument('--amplitude', type=int, default=20, help='peak amplitude, 0..127')
    ap.add_argument('--repeat', type=int, default=1)
    ap.add_argument('--prerender', action='store_true', help='synthesize all notes before playback starts')
    ap.add_argument('--mute', action='store_true', help='no audio output, keep timing')
    ap.add_argument('--log-level', default=os.getenv("LOG_LEVEL", "INFO"),
                    choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return ap


def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        audio=AudioConfig(
            sample_rate=args.rate,
            channels=args.channels,
            buffer_samples=args.buffer,
            device_name=args.device,
            amplitude=args.amplitude,
            mute=args.mute,
        ),
        playback=PlaybackConfig(
            score_path=args.score,
            repeat=args.repeat,
            prerender=args.prerender,
        ),
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_crashlog()
    _init_logging(args.log_level)
    logging.info("tonequeue starting")
    try:
        cfg = config_from_args(args)
        return App(cfg).run()
    except ValueError as e:
        # AudioSpec / amplitude validation
        logging.error("invalid configuration: %s", e)
        return 2


if __name__ == '__main__':
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("interrupted")
        sys.exit(130)
    except Exception as e:
        log_exception("Top-level exception", e)
        logging.error("unhandled exception: %s", e, exc_info=True)
        raise
