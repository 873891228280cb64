"""Clipboard support for `secretstore read --copy`.

Uses pyperclip for cross-platform clipboard access.
"""

from __future__ import annotations

import pyperclip


class ClipboardUnavailable(RuntimeError):
    # raised when no clipboard mechanism is available (e.g. headless Linux)
    pass


def copy_to_clipboard(text: str) -> None:
    """Put a secret on the system clipboard instead of printing it.

    Raises:
        ClipboardUnavailable: If pyperclip cannot reach a clipboard.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardUnavailable(f"Clipboard not available: {e}") from e
