"""Child process execution for command invocations.

Each invocation spawns exactly one process from a literal argument
vector (no shell), feeds it the optional stdin payload, and buffers
stdout and stderr until both streams close. Nothing is shared between
invocations, so a slow command only delays its own response.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence

from restcli.domain.models import CompletionRecord, SpawnFailure, SpawnOptions

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536


def encode_payload(text: str) -> bytes:
    """UTF-8 encode stdin text; undecodable argv bytes round-trip unchanged."""
    try:
        return text.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return text.encode("utf-8", errors="replace")


class ProcessRunner:
    """Runs one external command per call and captures its outcome.

    Args:
        max_output_bytes: Per-stream capture limit. Bytes past the limit
            are read and discarded so the child never blocks on a full
            pipe. None buffers everything.
    """

    def __init__(self, max_output_bytes: int | None = None) -> None:
        self._max_output_bytes = max_output_bytes

    @property
    def max_output_bytes(self) -> int | None:
        return self._max_output_bytes

    async def run(
        self,
        executable: str,
        args: Sequence[str],
        stdin: str | None = None,
        spawn_options: SpawnOptions | None = None,
    ) -> CompletionRecord | SpawnFailure:
        """Spawn ``executable`` with ``args`` and wait for it to finish."""
        options = spawn_options or SpawnOptions()
        env = None
        if options.env:
            env = os.environ.copy()
            env.update(options.env)
        payload = encode_payload(stdin) if stdin is not None else None

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdin=asyncio.subprocess.PIPE if payload is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=options.cwd,
                env=env,
            )
        except (OSError, ValueError) as e:
            # ValueError: embedded null byte in the executable, an argument or env.
            logger.warning("Could not launch %s: %s", executable, e)
            return SpawnFailure(message=f"Could not execute {executable}: {e}")

        logger.debug("Started %s (pid=%d)", executable, process.pid)
        try:
            stdout, stderr = await asyncio.wait_for(
                self._communicate(process, payload), timeout=options.timeout
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.warning(
                "%s (pid=%d) killed after %.1fs timeout", executable, process.pid, options.timeout
            )
            return CompletionRecord(
                stdout="",
                stderr=f"Command timed out after {options.timeout:g}s\n",
                exit_code=process.returncode if process.returncode is not None else -1,
            )
        except BaseException:
            await self._kill(process)
            raise

        return CompletionRecord(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode if process.returncode is not None else -1,
        )

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kill the child if it is still running and reap it."""
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()

    async def _communicate(
        self, process: asyncio.subprocess.Process, payload: bytes | None
    ) -> tuple[bytes, bytes]:
        """Feed stdin and drain both output streams concurrently."""
        if process.stdout is None or process.stderr is None:
            raise RuntimeError(f"pid {process.pid} was started without output pipes")
        stdout, stderr, _ = await asyncio.gather(
            self._drain(process.stdout, "stdout"),
            self._drain(process.stderr, "stderr"),
            self._feed(process, payload),
        )
        await process.wait()
        return stdout, stderr

    async def _feed(self, process: asyncio.subprocess.Process, payload: bytes | None) -> None:
        if payload is None or process.stdin is None:
            return
        try:
            process.stdin.write(payload)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # Child exited without reading all of its input.
            logger.debug("stdin closed early by pid %d", process.pid)
        finally:
            process.stdin.close()

    async def _drain(self, stream: asyncio.StreamReader, name: str) -> bytes:
        buffer = bytearray()
        discarded = 0
        limit = self._max_output_bytes
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            if limit is None:
                buffer.extend(chunk)
                continue
            room = limit - len(buffer)
            if room > 0:
                buffer.extend(chunk[:room])
            discarded += max(0, len(chunk) - max(room, 0))
        if discarded:
            logger.warning("Discarded %d bytes of %s past the %d byte limit", discarded, name, limit)
        return bytes(buffer)
