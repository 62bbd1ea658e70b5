"""Host list parsing: free-form lines in, clean hostnames out.

    example.com
    # staging boxes
    sub.example.org:8443
    see also: docs.example.net     <- dropped
"""

import re
from pathlib import Path
from typing import Iterable, List, Union
from urllib.parse import urlsplit

_DOMAIN = re.compile(r"^([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}(:\d+)?$")

# Fragments of prose copied along with hostnames from CT dumps and web pages.
_BLOCKLIST = ("go to", "see", "*", "(c)")


def is_clean_host(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#"):
        return False
    if any(bad in trimmed for bad in _BLOCKLIST):
        return False
    return bool(_DOMAIN.match(trimmed))


def clean_hosts(lines: Iterable[str]) -> List[str]:
    return [line.strip() for line in lines if is_clean_host(line)]


def normalize_target(host: str) -> str:
    host = host.strip()
    if host.lower().startswith(("http://", "https://")):
        return host
    return f"https://{host}"


def strip_scheme(target: str) -> str:
    return re.sub(r"^https?://", "", target, flags=re.I)


def hostname_of(host: str) -> str:
    """``sub.example.org:8443`` → ``sub.example.org``."""
    return urlsplit(normalize_target(host)).hostname or host


def read_host_list(path: Union[str, Path]) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read().replace("\r\n", "\n").split("\n")


def write_host_list(path: Union[str, Path], hosts: Iterable[str]) -> None:
    hosts = list(hosts)
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(hosts) + "\n")
