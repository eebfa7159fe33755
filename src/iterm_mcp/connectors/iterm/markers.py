"""Marked-command protocol.

A terminal session reports nothing back but its text, so a command's exit
status travels through that text. The command is wrapped between two echoed
markers, the second carrying ``$?``::

    echo "<marker>-START"; <command>; STATUS=$?; echo "<marker>-END:$STATUS"

Reading the tab later, the output is whatever lies between the markers. With
only the start marker visible the command is still running (or its end was
lost) and the partial output is returned with ``exit_code == -1``.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from typing import TYPE_CHECKING

from ...core.error_handling import ChannelError, ChannelTimeout
from ...core.models import ExtractionResult
from . import scripts

if TYPE_CHECKING:
    from .channel import AppleScriptChannel

logger = logging.getLogger(__name__)

NOT_FINISHED = -1


def generate_marker() -> str:
    """Unique marker built from random bytes and a millisecond timestamp"""
    return f"==={secrets.token_hex(4)}-{time.time_ns() // 1_000_000}==="


def wrap_command(command: str, marker: str) -> str:
    return f'echo "{marker}-START"; {command}; STATUS=$?; echo "{marker}-END:$STATUS"'


async def send_marked(channel: AppleScriptChannel, tab: int, command: str) -> str:
    """Send ``command`` to ``tab`` wrapped in a fresh marker pair.

    A multi-line command travels through a temporary file. When the send is
    rejected outright the file is removed here; after a timeout it is left in
    place since the session may still source and delete it.

    Returns:
        The marker, needed later by :func:`extract`
    """
    marker = generate_marker()
    script, temp_path = scripts.prepare_text(tab, wrap_command(command, marker))
    try:
        await channel.invoke(script)
    except ChannelTimeout:
        raise
    except ChannelError:
        scripts.discard_temp_script(temp_path)
        raise
    logger.debug(f"Sent marked command to tab {tab} with marker {marker}")
    return marker


def extract(raw: str, marker: str) -> ExtractionResult:
    """Recover the output and exit status of a marked command from tab text."""
    start_token = f"{marker}-START"
    start = raw.find(start_token)
    if start == -1:
        return ExtractionResult(content="", exit_code=NOT_FINISHED)

    after_start = raw[start + len(start_token):]
    end = re.search(rf"{re.escape(marker)}-END:(\d+)", after_start)
    if end is None:
        return ExtractionResult(content=after_start, exit_code=NOT_FINISHED)

    return ExtractionResult(
        content=after_start[: end.start()].strip(),
        exit_code=int(end.group(1)),
    )
