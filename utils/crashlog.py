# utils/crashlog.py
import datetime
import faulthandler
import os
import sys
import threading
import traceback

_fault_file = None
_LOG_DIR_ENV = "TONEQUEUE_LOG_DIR"


def log_dir() -> str:
    d = os.getenv(_LOG_DIR_ENV) or os.path.join(os.getcwd(), "logs")
    os.makedirs(d, exist_ok=True)
    return d


def _new_log_path(prefix: str = "crash") -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{prefix}-{stamp}.txt")


def setup_crashlog():
    """faulthandler dump for native crashes (SDL lives in C) + excepthooks."""
    global _fault_file
    try:
        if _fault_file is None:
            _fault_file = open(_new_log_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except OSError:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            with open(_new_log_path("crash"), "w", encoding="utf-8") as out:
                out.write("UNCAUGHT EXCEPTION\n")
                out.write("=" * 60 + "\n")
                traceback.print_exception(exc_type, exc, tb, file=out)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook


def log_exception(title: str, exc: BaseException) -> str:
    path = _new_log_path("error")
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"[{title}] {type(exc).__name__}: {exc}\n")
        diagnostic = getattr(exc, "diagnostic", "")
        if diagnostic:
            out.write(f"platform: {diagnostic}\n")
        out.write("Traceback:\n")
        out.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return path
