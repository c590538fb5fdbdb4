"""zsign command line invocation."""

import asyncio
import logging
from pathlib import Path
from typing import NamedTuple

from ipasign.core.exceptions import SigningError

logger = logging.getLogger(__name__)

SIGN_FAILED_MESSAGE = (
    "Failed to sign IPA. Please check your certificate and provisioning profile."
)


class ProcessResult(NamedTuple):
    """Outcome of a finished zsign process."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def diagnostics(self) -> str:
        return self.stderr.strip() or self.stdout.strip()


def build_sign_command(
    tool: str,
    certificate: Path,
    profile: Path,
    package: Path,
    output: Path,
    password: str | None = None,
    bundle_id: str | None = None,
) -> list[str]:
    """Build the zsign argument vector.

    Arguments are passed straight to the process, never through a shell, so
    user supplied values need no quoting.
    """
    cmd = [tool, "-k", str(certificate)]
    if password:
        cmd += ["-p", password]
    cmd += ["-m", str(profile)]
    if bundle_id:
        cmd += ["-b", bundle_id]
    cmd += ["-o", str(output), str(package)]
    return cmd


def redact_command(cmd: list[str]) -> list[str]:
    """Copy of cmd with the certificate password masked, for logging."""
    redacted = list(cmd)
    for i, arg in enumerate(redacted[:-1]):
        if arg == "-p":
            redacted[i + 1] = "***"
    return redacted


async def run_process(cmd: list[str], timeout: float | None = None) -> ProcessResult:
    """Run a command and wait for it to exit.

    Raises:
        FileNotFoundError: If the executable does not exist
        asyncio.TimeoutError: If timeout elapses; the process is killed first
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise

    return ProcessResult(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_zsign(cmd: list[str], timeout: float | None = None) -> ProcessResult:
    """Execute a zsign signing command.

    Args:
        cmd: Argument vector from build_sign_command
        timeout: Seconds to wait before killing zsign, None waits forever

    Returns:
        The finished process result (exit code zero)

    Raises:
        SigningError: If zsign is missing, times out or exits nonzero. The
            error details carry zsign's raw output.
    """
    logger.info("Running zsign", extra={"command": redact_command(cmd)})

    try:
        result = await run_process(cmd, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("zsign timeout", extra={"timeout_seconds": timeout})
        raise SigningError(SIGN_FAILED_MESSAGE, details=f"zsign timed out after {timeout} seconds")
    except OSError as e:
        logger.error("Failed to start zsign", extra={"tool": cmd[0], "error": str(e)})
        raise SigningError(SIGN_FAILED_MESSAGE, details=str(e)) from e

    if result.returncode != 0:
        details = result.diagnostics or f"zsign exited with status {result.returncode}"
        logger.error(
            "Signing error",
            extra={"returncode": result.returncode, "details": details},
        )
        raise SigningError(SIGN_FAILED_MESSAGE, details=details)

    return result


async def get_zsign_version(tool: str) -> str | None:
    """Query `zsign --version`.

    Returns:
        Trimmed version output ("unknown" if zsign printed nothing), or None
        when zsign is not available
    """
    try:
        result = await run_process([tool, "--version"], timeout=10)
    except (OSError, asyncio.TimeoutError) as e:
        logger.warning("zsign version check failed", extra={"tool": tool, "error": repr(e)})
        return None

    if result.returncode != 0:
        logger.warning(
            "zsign version check failed",
            extra={"tool": tool, "returncode": result.returncode},
        )
        return None

    return result.stdout.strip() or "unknown"


class SigningPool:
    """Capacity limit for concurrently running zsign processes.

    Callers wait for a free slot; nothing is rejected. A limit of 0 means
    unbounded.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    async def run(self, cmd: list[str], timeout: float | None = None) -> ProcessResult:
        if self._semaphore is None:
            return await run_zsign(cmd, timeout=timeout)
        async with self._semaphore:
            return await run_zsign(cmd, timeout=timeout)
