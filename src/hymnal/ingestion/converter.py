"""Bounded subprocess conversion of legacy binary decks into ``.pptx``.

The converter is a scarce, stateful external process: callers convert one
deck at a time and always release the output through :func:`converted_deck`,
which removes the scratch file on success and failure alike.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
import logging
import os
from pathlib import Path
import shutil
import signal
from typing import AsyncIterator, Protocol, runtime_checkable

from hymnal.config import DEFAULT_CONVERSION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

OPEN_FORMAT = "pptx"
KILL_DRAIN_SECONDS = 5.0


@dataclass(slots=True)
class MissingConverterBinary(Exception):
    """Run-fatal configuration error: the converter executable is absent."""

    binary: str

    def __str__(self) -> str:
        return f"Converter executable not found: {self.binary}"


class ConversionStatus(Enum):
    CONVERTED = "converted"
    TIMEOUT = "timeout"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ConversionResult:
    source_path: Path
    status: ConversionStatus
    output_path: Path | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ConversionStatus.CONVERTED and self.output_path is not None


@runtime_checkable
class DeckConverter(Protocol):
    """Contract for turning a legacy deck into an open container."""

    def ensure_available(self) -> None:
        """Raise MissingConverterBinary when the converter cannot run."""

    async def convert(self, source_path: Path) -> ConversionResult:
        """Convert one deck; never raise for per-file failures."""

    def cleanup(self, result: ConversionResult) -> None:
        """Remove any scratch output left behind by ``convert``."""


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """Kill the converter and every helper it forked into its session."""

    if os.name != "posix":
        proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def expected_output_path(source_path: Path, output_dir: Path) -> Path:
    return output_dir / f"{source_path.stem}.{OPEN_FORMAT}"


class LibreOfficeConverter:
    """Drive a headless office suite to convert decks into ``.pptx``."""

    def __init__(
        self,
        binary: str,
        scratch_dir: str | Path,
        *,
        timeout_seconds: float = DEFAULT_CONVERSION_TIMEOUT_SECONDS,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._binary = binary
        self._scratch_dir = Path(scratch_dir)
        self._timeout_seconds = timeout_seconds
        self._resolved_binary: str | None = None

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def ensure_available(self) -> None:
        if self._resolved_binary is not None:
            return
        candidate = Path(self._binary)
        if candidate.is_file():
            resolved = str(candidate)
        else:
            resolved = shutil.which(self._binary)
        if resolved is None:
            raise MissingConverterBinary(self._binary)
        self._resolved_binary = resolved

    def build_command(self, source_path: Path) -> list[str]:
        binary = self._resolved_binary or self._binary
        return [
            binary,
            "--headless",
            "--convert-to",
            OPEN_FORMAT,
            "--outdir",
            str(self._scratch_dir),
            str(source_path.resolve()),
        ]

    async def convert(self, source_path: Path) -> ConversionResult:
        self.ensure_available()
        self._scratch_dir.mkdir(parents=True, exist_ok=True)
        output_path = expected_output_path(source_path, self._scratch_dir)
        output_path.unlink(missing_ok=True)

        command = self.build_command(source_path)
        logger.debug("Converting %s", source_path)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            return ConversionResult(
                source_path=source_path,
                status=ConversionStatus.FAILED,
                reason=f"Could not start converter: {exc}",
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout_seconds
            )
        except asyncio.TimeoutError:
            _kill_process_group(proc)
            try:
                await asyncio.wait_for(proc.communicate(), timeout=KILL_DRAIN_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("Converter for %s still holds its pipes after kill", source_path)
            output_path.unlink(missing_ok=True)
            logger.warning("Conversion of %s timed out after %gs", source_path, self._timeout_seconds)
            return ConversionResult(
                source_path=source_path,
                status=ConversionStatus.TIMEOUT,
                reason=f"Timed out after {self._timeout_seconds:g}s",
            )

        stderr_text = stderr_bytes.decode("utf-8", errors="replace").strip()
        stdout_text = stdout_bytes.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            output_path.unlink(missing_ok=True)
            message = stderr_text or stdout_text or f"Converter exited with code {proc.returncode}"
            return ConversionResult(
                source_path=source_path,
                status=ConversionStatus.FAILED,
                reason=message,
            )

        if not output_path.is_file():
            return ConversionResult(
                source_path=source_path,
                status=ConversionStatus.FAILED,
                reason=f"Expected output not produced: {output_path}",
            )

        return ConversionResult(
            source_path=source_path,
            status=ConversionStatus.CONVERTED,
            output_path=output_path,
        )

    def cleanup(self, result: ConversionResult) -> None:
        target = result.output_path or expected_output_path(result.source_path, self._scratch_dir)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove converted deck %s: %s", target, exc)


@asynccontextmanager
async def converted_deck(converter: DeckConverter, source_path: Path) -> AsyncIterator[ConversionResult]:
    """Convert a deck and release its scratch output when the block exits."""

    result = await converter.convert(source_path)
    try:
        yield result
    finally:
        converter.cleanup(result)
