from __future__ import annotations
from typing import Callable, Optional

from pynput import keyboard
from gazewarp.core.control import ControlState
from gazewarp.core.ipc_state import set_enabled, set_refine


def run_hotkeys(state: ControlState, click_to: Optional[Callable[[], object]] = None, toggles: bool = True) -> None:
    """
    Global hotkeys (X11 / macOS / Windows):
    - Ctrl+Alt+Space: Toggle ON/OFF         (toggles=True)
    - Ctrl+Alt+Esc:   Panic OFF             (toggles=True)
    - Ctrl+Alt+R:     Toggle edge snapping  (toggles=True)
    - Ctrl+Alt+C:     Click where you look  (click_to given)
    """

    pressed = set()

    CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
    ALT_KEYS  = {keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r}

    def is_ctrl():
        return any(k in pressed for k in CTRL_KEYS)

    def is_alt():
        return any(k in pressed for k in ALT_KEYS)

    def is_char(k, c: str) -> bool:
        if not isinstance(k, keyboard.KeyCode) or k.char is None:
            return False
        # Windows reports Ctrl+C as the control character
        return k.char.lower() == c or k.char == chr(ord(c) & 0x1F)

    def on_press(k):
        pressed.add(k)

        if not (is_ctrl() and is_alt()):
            return
        if toggles and k == keyboard.Key.space:
            enabled = state.toggle()
            set_enabled(enabled)
            print(f"[gazewarp] {'ON' if enabled else 'OFF'} (Ctrl+Alt+Space)")
        elif toggles and k == keyboard.Key.esc:
            state.set_enabled(False)
            set_enabled(False)
            print("[gazewarp] OFF (PANIC) (Ctrl+Alt+Esc)")
        elif toggles and is_char(k, "r"):
            refine = state.toggle_refine()
            set_refine(refine)
            print(f"[gazewarp] edge snapping {'ON' if refine else 'OFF'} (Ctrl+Alt+R)")
        elif click_to is not None and is_char(k, "c"):
            if state.is_enabled():
                click_to()

    def on_release(k):
        pressed.discard(k)

    with keyboard.Listener(on_press=on_press, on_release=on_release) as listener:
        listener.join()
