from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class SyncStage(str, Enum):
    """Stages of a datasource generation run, for progress reporting."""

    RESOLVING = "resolving"
    WALKING = "walking"
    FILE_STARTED = "file_started"
    FILE_UPLOADED = "file_uploaded"
    FILE_FAILED = "file_failed"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def default_message(self) -> str:
        """Fallback string for stages when no explicit message provided."""
        defaults: dict[SyncStage, str] = {
            SyncStage.RESOLVING: "Resolving project and pipeline...",
            SyncStage.WALKING: "Walking datasource directory...",
            SyncStage.FILE_STARTED: "Uploading document...",
            SyncStage.FILE_UPLOADED: "Document uploaded.",
            SyncStage.FILE_FAILED: "Document failed.",
            SyncStage.COMPLETED: "Datasource generated.",
            SyncStage.ERROR: "Error detected.",
        }
        return defaults.get(self, "Working...")


@dataclass
class _ProgressSnapshot:
    stage: SyncStage = SyncStage.RESOLVING
    message: str = "Preparing upload..."
    files_seen: int = 0
    uploaded: int = 0
    failed: int = 0


class ConsoleSpinnerProgress:
    """Single-line spinner showing the current file and running counters.

    The file total is unknown up front because the directory walk is lazy,
    so the line shows files seen so far rather than a ratio.
    """

    def __init__(self, *, enabled: Optional[bool] = None, interval: float = 0.12) -> None:
        super().__init__()
        self._enabled = sys.stdout.isatty() if enabled is None else enabled
        self._interval = max(interval, 0.05)
        self._frames = ["-", "\\", "|", "/"]
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._snapshot = _ProgressSnapshot()
        self._render_thread: threading.Thread | None = None
        self._last_line_length = 0
        self._active = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_active(self) -> bool:
        return self._active and self._render_thread is not None

    def start(self, *, stage: SyncStage | None = None, message: str | None = None) -> None:
        """Begin rendering, optionally seeding the stage and message."""
        if not self._enabled:
            return

        self.update(stage=stage, message=message)
        if self._active:
            return

        self._stop_event.clear()
        self._render_thread = threading.Thread(
            target=self._render_loop, daemon=True, name="datasource-spinner"
        )
        self._render_thread.start()
        self._active = True

    def update(
        self,
        *,
        stage: SyncStage | None = None,
        message: str | None = None,
        files_seen: Optional[int] = None,
        uploaded: Optional[int] = None,
        failed: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return

        with self._lock:
            if stage is not None:
                self._snapshot.stage = stage
                if message is None:
                    message = stage.default_message
            if message is not None:
                self._snapshot.message = message
            if files_seen is not None:
                self._snapshot.files_seen = max(files_seen, 0)
            if uploaded is not None:
                self._snapshot.uploaded = max(uploaded, 0)
            if failed is not None:
                self._snapshot.failed = max(failed, 0)

    def write_line(self, text: str) -> None:
        """Print a full line without garbling the spinner."""
        if not self._enabled:
            print(text)
            return

        with self._lock:
            self._clear_line_locked()
            print(text)
            _ = sys.stdout.flush()

    def stop(self, final_message: str | None = None) -> None:
        if self._enabled and self._active:
            self._stop_event.set()
            if self._render_thread is not None:
                self._render_thread.join()
            self._render_thread = None
            self._active = False
            with self._lock:
                self._clear_line_locked()

        if final_message:
            print(final_message)
            _ = sys.stdout.flush()

    def _render_loop(self) -> None:
        frame_index = 0
        while not self._stop_event.is_set():
            with self._lock:
                snapshot = replace(self._snapshot)
            frame = self._frames[frame_index % len(self._frames)]
            frame_index += 1
            self._write_inline(self._build_line(frame, snapshot))
            if self._stop_event.wait(self._interval):
                break

    @staticmethod
    def _build_line(frame: str, snapshot: _ProgressSnapshot) -> str:
        parts: list[str] = [frame]
        if snapshot.files_seen:
            parts.append(f"[{snapshot.files_seen} files]")
        parts.append(snapshot.message.strip())

        extras: list[str] = []
        if snapshot.uploaded:
            extras.append(f"uploaded={snapshot.uploaded}")
        if snapshot.failed:
            extras.append(f"failed={snapshot.failed}")
        if extras:
            parts.append("(" + " | ".join(extras) + ")")

        return " ".join(parts)

    def _write_inline(self, line: str) -> None:
        with self._lock:
            pad = max(self._last_line_length - len(line), 0)
            _ = sys.stdout.write("\r" + line + " " * pad)
            _ = sys.stdout.flush()
            self._last_line_length = len(line)

    def _clear_line_locked(self) -> None:
        if self._last_line_length <= 0:
            return
        _ = sys.stdout.write("\r" + " " * self._last_line_length + "\r")
        _ = sys.stdout.flush()
        self._last_line_length = 0


__all__ = ["ConsoleSpinnerProgress", "SyncStage"]
