"""
UDP fixation feed.

The eye tracker side (any language, any SDK) sends one JSON datagram per
fixation:
  {"x": 812, "y": 430}
or, when the gaze is lost or the fixation should be withdrawn:
  {"clear": true}

Coordinates are screen pixels.
"""

from __future__ import annotations

import json
import logging
import math
import socket
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from gazewarp.core.types import Point
from gazewarp.warp.engine import WarpEngine

logger = logging.getLogger(__name__)

CLEAR = "clear"


def parse_dest(dest: str) -> Tuple[str, int]:
    if ":" not in dest:
        raise ValueError("address must be host:port")
    host, port_s = dest.rsplit(":", 1)
    return host, int(port_s)


def parse_fixation(payload: bytes) -> Union[Point, str, None]:
    """Point for a fixation, CLEAR for a withdrawal, None for junk."""
    try:
        msg = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(msg, dict):
        return None
    if msg.get("clear"):
        return CLEAR
    x, y = msg.get("x"), msg.get("y")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (x, y)):
        return None
    # json accepts NaN, Infinity and ints too big for a float
    try:
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
    except OverflowError:
        return None
    return Point(int(x), int(y))


@dataclass
class UdpFixationSource:
    engine: WarpEngine
    host: str = "127.0.0.1"
    port: int = 5555
    _sock: Optional[socket.socket] = field(default=None, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)

    def handle(self, payload: bytes) -> None:
        msg = parse_fixation(payload)
        if msg is None:
            logger.debug("ignored datagram %r", payload[:64])
        elif msg == CLEAR:
            self.engine.clear_fixation()
        else:
            self.engine.on_fixation(msg)

    def run(self) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind((self.host, self.port))
        self._sock.settimeout(0.25)
        logger.info("listening for fixations on udp://%s:%d", self.host, self.port)
        try:
            while not self._stop.is_set():
                try:
                    payload, _ = self._sock.recvfrom(4096)
                except socket.timeout:
                    continue
                self.handle(payload)
        finally:
            self._sock.close()

    def start(self) -> threading.Thread:
        t = threading.Thread(target=self.run, daemon=True)
        t.start()
        return t

    def stop(self) -> None:
        self._stop.set()
