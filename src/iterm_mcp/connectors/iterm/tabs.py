"""Tab queries against the current iTerm2 window.

Nothing is cached: every call asks iTerm2 again, because tab indices shift
whenever tabs are opened, closed or reordered.
"""

from __future__ import annotations

import logging
import re
from typing import Final

from ...core.error_handling import BoundsError, ProtocolError
from ...core.models import TabSnapshot
from . import scripts
from .channel import AppleScriptChannel

logger = logging.getLogger(__name__)

PROMPT_TERMINATORS: Final[tuple[str, ...]] = ("%", "$", ">")

_NAME_PATTERN = re.compile(r"TAB_NAME:([^\n]*)")
_CONTENT_TOKEN = "TAB_CONTENT:"


def infer_running(content: str) -> bool:
    """Guess whether the session is busy from its visible text.

    Best-effort only: the last non-empty line ending in a common prompt
    terminator (``%``, ``$``, ``>``) is read as an idle prompt. Programs can
    print such lines while still running, and prompts can end differently.
    """
    for line in reversed(content.splitlines()):
        stripped = line.rstrip()
        if stripped:
            return not stripped.endswith(PROMPT_TERMINATORS)
    return True


def tail(text: str, lines: int) -> str:
    """Last ``lines`` lines of ``text``; ``0`` keeps everything."""
    if lines <= 0:
        return text
    return "\n".join(text.split("\n")[-lines:])


def parse_tab_info(raw: str, tab: int) -> TabSnapshot:
    content_start = raw.find(_CONTENT_TOKEN)
    if content_start == -1:
        raise ProtocolError(f"No tab content found in info for tab {tab}")

    name_match = _NAME_PATTERN.search(raw[:content_start])
    content = raw[content_start + len(_CONTENT_TOKEN):].strip()
    return TabSnapshot(
        index=tab,
        name=name_match.group(1).strip() if name_match else "Unknown",
        is_running=infer_running(content),
        content=content,
    )


class TabQuery:
    """Reads tab count, content and info through the automation channel."""

    def __init__(self, channel: AppleScriptChannel) -> None:
        self.channel = channel

    async def tab_count(self) -> int:
        raw = await self.channel.invoke(scripts.tab_count())
        try:
            return int(raw)
        except ValueError:
            raise ProtocolError(f"Unexpected tab count from iTerm2: {raw!r}")

    async def ensure_in_bounds(self, tab: int) -> int:
        """Check ``tab`` against the live tab count; returns the count."""
        count = await self.tab_count()
        if tab < 0 or tab >= count:
            raise BoundsError(
                f"Tab index {tab} is out of bounds. There are only {count} tabs.",
                tab=tab,
                tab_count=count,
            )
        return count

    async def tab_content(self, tab: int) -> str:
        return await self.channel.invoke(scripts.tab_content(tab))

    async def tab_info(self, tab: int) -> TabSnapshot:
        raw = await self.channel.invoke(scripts.tab_info(tab))
        try:
            return parse_tab_info(raw, tab)
        except ProtocolError as e:
            logger.warning(str(e))
            return TabSnapshot(
                index=tab, name="Unknown", is_running=False, content="Error parsing tab data"
            )

    async def all_tab_info(self) -> list[TabSnapshot]:
        """Snapshot every tab; a tab that fails is reported, not fatal."""
        count = await self.tab_count()
        snapshots = []
        for index in range(count):
            try:
                snapshots.append(await self.tab_info(index))
            except Exception as e:
                logger.warning(f"Error accessing tab {index}: {e}")
                snapshots.append(
                    TabSnapshot(
                        index=index,
                        name=f"Tab {index}",
                        is_running=False,
                        content=f"Error accessing tab: {e}",
                    )
                )
        return snapshots
