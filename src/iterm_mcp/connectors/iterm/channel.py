"""AppleScript automation channel for iTerm2.

Every call into iTerm2 goes through :class:`AppleScriptChannel`. A call is a
single ``osascript -e <script>`` run, bounded by a per-attempt timeout and
retried a fixed number of times when the failure looks transient (iTerm2 not
running yet, stale Apple Event connection) or when the attempt timed out.
Anything else, a script error or a tab-bounds error raised by the script
itself, fails on the first attempt.

Failures are classified once, here, into an :class:`ErrorKind` carried on the
raised :class:`ChannelError`, so callers never re-match error text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from ...core.error_handling import (
    BoundsError,
    ChannelError,
    ChannelTimeout,
    ErrorKind,
    classify_error,
)
from ...core.models import ChannelConfig

logger = logging.getLogger(__name__)

OSASCRIPT: Final[str] = "osascript"


class AppleScriptChannel:
    """Runs AppleScript against iTerm2 with timeout and bounded retries."""

    def __init__(self, config: ChannelConfig | None = None) -> None:
        self.config = config or ChannelConfig()

    async def invoke(self, script: str, config: ChannelConfig | None = None) -> str:
        """Run ``script`` and return its stripped standard output.

        Args:
            script: AppleScript source
            config: Overrides the channel's timeout/retry policy for this call

        Raises:
            ChannelTimeout: the last attempt timed out and no retries remain
            BoundsError: the script rejected the tab index
            ChannelError: any other failure, after retries where retryable
        """
        policy = config or self.config
        remaining = policy.max_retries
        attempts = 0

        while True:
            attempts += 1
            try:
                returncode, stdout, stderr = await self._run_osascript(
                    script, policy.timeout_seconds
                )
            except asyncio.TimeoutError:
                if remaining > 0:
                    logger.warning(
                        f"AppleScript execution timed out, retrying ({remaining} attempts left)..."
                    )
                    remaining -= 1
                    await asyncio.sleep(policy.retry_delay_seconds)
                    continue
                raise ChannelTimeout(
                    f"AppleScript execution timed out after {policy.timeout_ms}ms "
                    f"({attempts} attempts)",
                    attempts=attempts,
                )
            except FileNotFoundError as e:
                raise ChannelError(
                    f"{OSASCRIPT} is not available: {e}",
                    kind=ErrorKind.UNAVAILABLE,
                    attempts=attempts,
                ) from e

            if returncode == 0:
                if attempts > 1:
                    logger.info(f"AppleScript succeeded after {attempts} attempts")
                return stdout.strip()

            message = stderr.strip() or f"{OSASCRIPT} exited with status {returncode}"
            kind = classify_error(message)

            if kind.retryable:
                if remaining > 0:
                    logger.warning(
                        f"iTerm2 access error, retrying ({remaining} attempts left): {message}"
                    )
                    remaining -= 1
                    await asyncio.sleep(policy.retry_delay_seconds)
                    continue
                raise ChannelError(
                    f"iTerm2 unavailable after {attempts} attempts: {message}",
                    kind=kind,
                    attempts=attempts,
                )

            logger.error(f"AppleScript execution failed ({kind.value}): {message}")
            if kind is ErrorKind.OUT_OF_BOUNDS:
                raise BoundsError(_script_error_text(message), attempts=attempts)
            raise ChannelError(
                f"AppleScript execution failed: {message}", kind=kind, attempts=attempts
            )

    async def _run_osascript(self, script: str, timeout: float) -> tuple[int, str, str]:
        """Run one osascript attempt.

        The child is killed and reaped when the attempt ends early, by timeout
        or by cancellation, so nothing outlives the attempt.
        """
        process = await asyncio.create_subprocess_exec(
            OSASCRIPT,
            "-e",
            script,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except BaseException:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            raise

        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )


def _script_error_text(message: str) -> str:
    """Strip osascript's ``execution error: ... (-2700)`` wrapping"""
    text = message
    if "execution error:" in text:
        text = text.split("execution error:", 1)[1]
    text = text.strip()
    if text.endswith(")") and "(" in text:
        head, _, tail = text.rpartition("(")
        if tail[:-1].lstrip("-").isdigit():
            text = head.strip()
    return text
