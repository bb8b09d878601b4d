"""Line protocol between the watcher child process and its supervisor.

The watcher writes one JSON object per line on stdout. Anything that is
not a recognised message is treated as ordinary output.
"""

from __future__ import annotations

import json
from typing import Any

RESTART = "restart"
READY = "ready"

MESSAGE_KEY = "event"


def encode_message(event: str, **fields: Any) -> str:
    """Serialize one message as a single line (no trailing newline)."""
    return json.dumps({MESSAGE_KEY: event, **fields}, separators=(",", ":"))


def encode_restart(paths: list[str]) -> str:
    return encode_message(RESTART, paths=sorted(paths))


def decode_message(line: str) -> dict[str, Any] | None:
    """Return the message in *line*, or None if it is plain output."""
    line = line.strip()
    if not line.startswith("{"):
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get(MESSAGE_KEY), str):
        return None
    return data
