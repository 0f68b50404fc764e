"""
External process helpers for depvalidator.

Resolvers shell out to ``git`` and ``go``. They do so through a
:class:`CommandRunner`, an async callable that tests can replace with a fake
without patching global process hooks.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from dataclasses import dataclass
from typing import Awaitable, Mapping, Optional, Protocol, Sequence, Union


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a finished process."""

    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


class CommandRunner(Protocol):
    """Signature shared by :func:`run_command` and test fakes."""

    def __call__(
        self,
        args: Sequence[str],
        *,
        timeout: Optional[float] = None,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> Awaitable[CommandResult]: ...


async def run_command(
    args: Sequence[str],
    *,
    timeout: Optional[float] = None,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``args`` and capture its output.

    The process is killed when ``timeout`` elapses.

    Raises:
        OSError: The executable cannot be started (e.g. not installed).
        asyncio.TimeoutError: The process outlived ``timeout``.
    """
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        stdin=asyncio.subprocess.DEVNULL,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise

    return CommandResult(returncode=proc.returncode or 0, stdout=stdout, stderr=stderr)
