import sys
import threading
from datetime import datetime

from colorama import init as colorama_init, Fore, Style
colorama_init(autoreset=True)


class Log:
    """Coloured operational log. Writes to stderr so stdout stays parseable."""

    def __init__(self, verbose: int = 1, stream=None):
        self.verbose = verbose
        self.stream = stream
        self.URL = Fore.MAGENTA
        self._lock = threading.Lock()

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def _emit(self, line: str):
        with self._lock:
            print(line, file=self.stream or sys.stderr, flush=True)

    def info(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            self._emit(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        self._emit(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        self._emit(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            self._emit(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def finding(self, kind: str, url: str, detail: str = ""):
        kind_col = {"env": Fore.RED, "secret": Fore.RED,
                    "inline": Fore.YELLOW}.get(kind, Fore.WHITE)
        tail = f" {Style.DIM}({detail}){Style.RESET_ALL}" if detail else ""
        self._emit(f"{self._fmt('FINDING', kind_col)} {kind} "
                   f"{self.URL}{url}{Style.RESET_ALL}{tail}")
