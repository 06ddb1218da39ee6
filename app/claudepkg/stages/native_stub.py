"""Replacement for the Windows-only claude-native module.

claude-native is a native Node addon that only exists for Windows. The
Linux build swaps its index.js for this pure JavaScript stub, which keeps
the same call surface: every function returns a fixed value of the type
callers expect, and nothing throws.
"""

import json
from types import MappingProxyType

# KeyboardKey enum values used by the app's shortcut handling.
KEYBOARD_KEYS: MappingProxyType[str, int] = MappingProxyType(
    {
        "Backspace": 43,
        "Tab": 280,
        "Enter": 261,
        "Shift": 272,
        "Control": 61,
        "Alt": 40,
        "CapsLock": 56,
        "Escape": 85,
        "Space": 276,
        "PageUp": 251,
        "PageDown": 250,
        "End": 83,
        "Home": 154,
        "LeftArrow": 175,
        "UpArrow": 282,
        "RightArrow": 262,
        "DownArrow": 81,
        "Delete": 79,
        "Meta": 187,
    }
)

# Exported function -> fixed return value. None renders as a no-op
# (returns undefined).
NATIVE_FUNCTIONS: MappingProxyType[str, str | bool | None] = MappingProxyType(
    {
        "getWindowsVersion": "10.0.0",
        "setWindowEffect": None,
        "removeWindowEffect": None,
        "getIsMaximized": False,
        "flashFrame": None,
        "clearFlashFrame": None,
        "showNotification": None,
        "setProgressBar": None,
        "clearProgressBar": None,
        "setOverlayIcon": None,
        "clearOverlayIcon": None,
    }
)

STUB_RELATIVE_PATH = "node_modules/claude-native/index.js"


def _render_function(name: str, value: str | bool | None) -> str:
    if value is None:
        return f"  {name}: () => {{}},"
    return f"  {name}: () => {json.dumps(value)},"


def render_stub() -> str:
    """Render the CommonJS source of the stub module.

    Returns:
        JavaScript source exporting every native function and a frozen
        KeyboardKey object.
    """
    keys = "\n".join(f"  {name}: {code}," for name, code in KEYBOARD_KEYS.items())
    functions = "\n".join(_render_function(name, value) for name, value in NATIVE_FUNCTIONS.items())
    return (
        "// Stub implementation of claude-native using KeyboardKey enum values\n"
        "const KeyboardKey = {\n"
        f"{keys}\n"
        "};\n"
        "\n"
        "Object.freeze(KeyboardKey);\n"
        "\n"
        "module.exports = {\n"
        f"{functions}\n"
        "  KeyboardKey\n"
        "};\n"
    )
