"""Обёртка над внешним загрузчиком медиа (yt-dlp) и учёт фоновых загрузок."""

from __future__ import annotations

import asyncio
import json
import re
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from vidscout.config import DownloaderConfig, ScoutConfig
from vidscout.errors import DownloaderError
from vidscout.logger import logger

_TIMESTAMP_RE = re.compile(r"^\d+(?:\.\d+)?$|^(?:\d{1,2}:)?\d{1,2}:\d{2}(?:\.\d+)?$")


def is_valid_timestamp(value: str) -> bool:
    """Секунды (``90``, ``12.5``) или ``[HH:]MM:SS``."""
    return bool(_TIMESTAMP_RE.match(value.strip()))


@dataclass(slots=True)
class MediaFormat:
    format_id: str
    ext: str
    resolution: str
    filesize: Optional[int]
    note: str


@dataclass(slots=True)
class MediaInfo:
    """Метаданные ролика, как их отдаёт ``yt-dlp -J``."""

    title: str
    thumbnail: Optional[str]
    duration: Optional[float]
    formats: List[MediaFormat] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> MediaInfo:
        formats = [
            MediaFormat(
                format_id=str(f.get("format_id", "")),
                ext=f.get("ext") or "",
                resolution=f.get("resolution") or "",
                filesize=f.get("filesize") or f.get("filesize_approx"),
                note=f.get("format_note") or "",
            )
            for f in data.get("formats") or []
            if f.get("format_id")
        ]
        return cls(
            title=data.get("title") or "",
            thumbnail=data.get("thumbnail"),
            duration=data.get("duration"),
            formats=formats,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "formats": [
                {
                    "formatId": f.format_id,
                    "ext": f.ext,
                    "resolution": f.resolution,
                    "filesize": f.filesize,
                    "note": f.note,
                }
                for f in self.formats
            ],
        }


class MediaDownloader:
    """Запускает загрузчик как подпроцесс и разбирает его вывод."""

    def __init__(self, config: ScoutConfig) -> None:
        self.config = config
        self.settings: DownloaderConfig = config.downloader

    def build_info_command(self, url: str) -> List[str]:
        return [
            *self.settings.command,
            "-J",
            "--no-playlist",
            "--no-warnings",
            "--user-agent",
            self.config.user_agent,
            url,
        ]

    def build_download_command(
        self,
        url: str,
        output_template: str,
        format_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[str]:
        cmd = [
            *self.settings.command,
            "--no-playlist",
            "--no-warnings",
            "--no-progress",
            "--user-agent",
            self.config.user_agent,
            "-f",
            format_id or "bestvideo*+bestaudio/best",
            "-o",
            output_template,
            "--print",
            "after_move:filepath",
        ]
        if not self.config.verify_ssl:
            cmd.append("--no-check-certificates")
        if start or end:
            section = f"*{start or '0'}-{end or 'inf'}"
            cmd += ["--download-sections", section, "--force-keyframes-at-cuts"]
        cmd.append(url)
        return cmd

    async def _run(self, cmd: List[str], timeout: float) -> str:
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise DownloaderError(f"Cannot start {cmd[0]}: {exc}") from exc
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise DownloaderError(f"{cmd[0]} did not finish within {timeout} s") from exc
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        err_text = stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise DownloaderError(
                f"{cmd[0]} exited with code {proc.returncode}: {err_text.splitlines()[-1] if err_text else ''}",
                returncode=proc.returncode,
                stderr=err_text,
            )
        return stdout.decode("utf-8", errors="replace")

    async def info(self, url: str) -> MediaInfo:
        """Возвращает название, превью и список форматов по ссылке на медиа."""
        out = await self._run(self.build_info_command(url), self.settings.info_timeout)
        try:
            data = json.loads(out)
        except json.JSONDecodeError as exc:
            raise DownloaderError(f"Unparseable output from {self.settings.command[0]}") from exc
        if not isinstance(data, dict):
            raise DownloaderError(f"Unexpected output from {self.settings.command[0]}")
        return MediaInfo.from_json(data)

    async def download(
        self,
        url: str,
        output_dir: Path,
        format_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Path:
        """Скачивает (и при start/end обрезает) медиа, возвращает путь к файлу."""
        output_dir.mkdir(parents=True, exist_ok=True)
        template = str(output_dir / f"{name or uuid.uuid4().hex}.%(ext)s")
        cmd = self.build_download_command(url, template, format_id, start, end)
        out = await self._run(cmd, self.settings.download_timeout)
        lines = [line.strip() for line in out.splitlines() if line.strip()]
        if not lines:
            raise DownloaderError("Downloader did not report an output file")
        path = Path(lines[-1])
        if not path.is_file():
            raise DownloaderError(f"Reported file {path} does not exist")
        return path


@dataclass(slots=True)
class DownloadJob:
    """Состояние одной фоновой загрузки."""

    id: str
    url: str
    status: str = "processing"
    file: Optional[Path] = None
    error: Optional[str] = None
    created: float = field(default_factory=time.time)
    finished: Optional[float] = None

    def to_dict(self, public_prefix: str = "/downloads") -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "status": self.status}
        if self.file is not None:
            data["file"] = f"{public_prefix}/{self.file.name}"
        if self.error:
            data["error"] = self.error
        return data


class DownloadTracker:
    """In-memory учёт загрузок: id → DownloadJob. Живёт столько, сколько процесс."""

    def __init__(self, cleanup_after: float = 3600.0) -> None:
        self.cleanup_after = cleanup_after
        self.jobs: Dict[str, DownloadJob] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    def get(self, job_id: str) -> Optional[DownloadJob]:
        return self.jobs.get(job_id)

    def submit(self, url: str, runner: Callable[[str], Awaitable[Path]]) -> DownloadJob:
        """Регистрирует загрузку и сразу возвращает job; runner(job_id) работает в фоне."""
        job = DownloadJob(id=uuid.uuid4().hex, url=url)
        self.jobs[job.id] = job
        self._tasks[job.id] = asyncio.create_task(self._run(job, runner))
        logger.info("Download %s started for %s", job.id, url)
        return job

    async def _run(self, job: DownloadJob, runner: Callable[[str], Awaitable[Path]]) -> None:
        try:
            job.file = await runner(job.id)
            job.status = "completed"
            logger.info("Download %s completed: %s", job.id, job.file)
        except DownloaderError as exc:
            job.status = "failed"
            job.error = str(exc)
            logger.warning("Download %s failed: %s", job.id, exc)
        except Exception as exc:
            job.status = "failed"
            job.error = f"Internal error: {exc}"
            logger.exception("Download %s crashed", job.id)
        finally:
            job.finished = time.time()
            self._tasks.pop(job.id, None)
            if job.status != "processing":
                self.schedule_cleanup(job.id)

    def schedule_cleanup(self, job_id: str) -> None:
        loop = asyncio.get_running_loop()
        self._timers[job_id] = loop.call_later(self.cleanup_after, self.cleanup, job_id)

    def cleanup(self, job_id: str) -> None:
        """Удаляет файл и запись о загрузке."""
        timer = self._timers.pop(job_id, None)
        if timer is not None:
            timer.cancel()
        job = self.jobs.pop(job_id, None)
        if job is None:
            return
        if job.file is not None:
            job.file.unlink(missing_ok=True)
        logger.debug("Cleaned up download %s", job_id)

    async def shutdown(self) -> None:
        """Отменяет незавершённые загрузки и таймеры очистки."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


__all__ = [
    "DownloadJob",
    "DownloadTracker",
    "MediaDownloader",
    "MediaFormat",
    "MediaInfo",
    "is_valid_timestamp",
]
