from __future__ import annotations

import threading

from .game_core import Key, KeySource


class InputListener:
    """Blocks until one of the round keys is pressed, then cancels the reveal."""

    def __init__(self, keys: KeySource) -> None:
        self._keys = keys

    def read(self, cancel: threading.Event) -> Key:
        # Keystrokes typed during the previous round's outcome must not answer this one.
        self._keys.drain()

        while True:
            key = Key.from_keystroke(self._keys.read_key())
            if key is None:
                continue
            cancel.set()
            return key
