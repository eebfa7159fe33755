"""AppleScript templates for driving iTerm2 sessions.

Tabs are addressed by a zero-based index into the current window's tab list.
The index is re-validated inside every generated script, against the tab
count at the time the script runs, and the script raises a readable error
when it is out of range.
"""

from __future__ import annotations

import logging
import os
import shlex
import tempfile
from typing import Final, Optional

from ...core.error_handling import BoundsError, ValidationError

logger = logging.getLogger(__name__)

TEMP_FILE_PREFIX: Final[str] = "iterm_cmd_"

_SIMPLE_ESCAPES: Final[dict[str, str]] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_APP_GUARD: Final[str] = """\
if application "iTerm2" is not running then
    error "iTerm2 is not running"
end if
tell application "iTerm2"
    if (count of windows) is 0 then
        error "No iTerm2 windows are open"
    end if"""


def escape_applescript(text: str) -> str:
    """Escape ``text`` for use between double quotes in AppleScript.

    Backslash, quote, newline, carriage return and tab get backslash escapes.
    Non-ASCII and other control characters cannot be written safely inside the
    literal, so they are spliced in with ``" & (character id N) & "``; the
    surrounding literal therefore evaluates back to the original string.
    """
    parts = []
    for char in text:
        if char in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) >= 0x7F:
            parts.append(f'" & (character id {ord(char)}) & "')
        else:
            parts.append(char)
    return "".join(parts)


def _quoted(text: str) -> str:
    return f'"{escape_applescript(text)}"'


def _check_tab(tab: int) -> None:
    if tab < 0:
        raise BoundsError(f"Tab index {tab} is out of bounds.", tab=tab)


def _session_script(tab: int, operation: str) -> str:
    """Wrap ``operation`` so it runs in the current session of ``tab``."""
    _check_tab(tab)
    position = tab + 1
    return f"""{_APP_GUARD}
    tell current window
        set numTabs to count of tabs
        if {position} > numTabs then
            error "Tab index {tab} is out of bounds. There are only " & numTabs & " tabs."
        end if
        tell tab {position}
            tell current session
                {operation}
            end tell
        end tell
    end tell
end tell
"""


def tab_count() -> str:
    return f"""{_APP_GUARD}
    tell current window
        return count of tabs
    end tell
end tell
"""


def new_tab() -> str:
    return f"""{_APP_GUARD}
    tell current window
        create tab with default profile
    end tell
end tell
"""


def tab_content(tab: int) -> str:
    return _session_script(tab, "return contents")


def tab_info(tab: int) -> str:
    """Script returning ``TAB_NAME:<name>`` and ``TAB_CONTENT:<contents>`` lines."""
    return _session_script(
        tab,
        """set tabName to "Unknown"
                try
                    set tabName to name
                end try
                return "TAB_NAME:" & tabName & linefeed & "TAB_CONTENT:" & contents""",
    )


def send_text(tab: int, text: str) -> str:
    """Script typing ``text`` into ``tab`` followed by a newline.

    Multi-line text is written to a temporary shell file which the session
    sources and then deletes. When no temporary file can be created the
    newlines are collapsed into ``; `` and the text is sent inline instead.
    """
    return prepare_text(tab, text)[0]


def prepare_text(tab: int, text: str) -> tuple[str, Optional[str]]:
    """Like :func:`send_text`, also returning the temporary file it wrote.

    The session only deletes the file once the script has run, so a caller
    whose script never reached the session owns the cleanup.
    """
    _check_tab(tab)
    if "\n" in text or "\r" in text:
        try:
            path = _write_temp_script(text)
        except OSError as e:
            logger.warning(f"Error creating temp file, sending command inline: {e}")
            inline = text.replace("\r\n", "\n").replace("\r", "\n").replace("\n", "; ")
            return _session_script(tab, f"write text {_quoted(inline)}"), None
        quoted_path = shlex.quote(path)
        script = _session_script(
            tab, f"write text {_quoted(f'source {quoted_path} && rm -f {quoted_path}')}"
        )
        return script, path
    return _session_script(tab, f"write text {_quoted(text)}"), None


def discard_temp_script(path: Optional[str]) -> None:
    """Remove a temporary command file the session never sourced."""
    if path is None:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
    logger.debug(f"Removed unsent command file {path}")


def send_control_byte(tab: int, byte: int) -> str:
    """Script writing a single raw byte (no newline) to ``tab``."""
    if isinstance(byte, bool) or not isinstance(byte, int) or not 0 <= byte <= 0x7F:
        raise ValidationError(f"Control byte must be in 0-127, got {byte!r}", field="byte", value=byte)
    return _session_script(tab, f"write text (character id {byte}) newline NO")


def _write_temp_script(text: str) -> str:
    fd, path = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=".sh")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError:
        os.unlink(path)
        raise
    logger.debug(f"Wrote multi-line command to {path}")
    return path
