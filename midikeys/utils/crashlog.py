# utils/crashlog.py
import os, sys, faulthandler, datetime, traceback, threading
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_fault_file = None
_log_dir: Optional[str] = None

def log_dir() -> str:
    d = _log_dir or os.path.join(os.getcwd(), "logs")
    os.makedirs(d, exist_ok=True)
    return d

def set_log_dir(path: Optional[str]):
    global _log_dir
    _log_dir = path

def _new_log_path(prefix: str = "crash") -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    return os.path.join(log_dir(), f"{prefix}-{stamp}.txt")

def init_logging(level: str = "INFO", max_bytes: int = 2 * 1024 * 1024, backup_count: int = 3):
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(level)
    sh = logging.StreamHandler()
    sh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(sh)
    fh = RotatingFileHandler(os.path.join(log_dir(), "midikeys.log"),
                             maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

def setup_crashlog():
    global _fault_file
    try:
        if _fault_file is None:
            _fault_file = open(_new_log_path("native"), "w", encoding="utf-8")
        faulthandler.enable(_fault_file, all_threads=True)
    except OSError:
        _fault_file = None

    def _hook(exc_type, exc, tb):
        try:
            report_crash(exc_type, exc, tb)
        finally:
            sys.__excepthook__(exc_type, exc, tb)
    sys.excepthook = _hook

    # MIDI 輸入與 drain 都在背景執行緒
    def _thread_hook(args):
        where = args.thread.name if args.thread is not None else "?"
        report_crash(args.exc_type, args.exc_value, args.exc_traceback, where)
    threading.excepthook = _thread_hook

def report_crash(exc_type, exc, tb, where: str = "main") -> str:
    """Record an uncaught exception in the app log and a crash-*.txt file."""
    log.critical("Uncaught %s in %s thread: %s", exc_type.__name__, where, exc,
                 exc_info=(exc_type, exc, tb))
    path = _new_log_path("crash")
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"UNCAUGHT EXCEPTION ({where})\n")
        out.write("=" * 60 + "\n")
        traceback.print_exception(exc_type, exc, tb, file=out)
    return path

def log_exception(title: str, exc: BaseException) -> str:
    path = _new_log_path("error")
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"[{title}] {type(exc).__name__}: {exc}\n")
        out.write("Traceback:\n")
        out.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return path
