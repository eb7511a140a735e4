"""Service for discovering and reading the served markdown files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from mdreview.core.errors import FileAccessError, FileReadError, FileServiceError
from mdreview.core.structured_logging import log_json

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")
DEFAULT_IGNORED_DIRS = ("node_modules", "dist", "dist-ssr")


def is_markdown_file(name: str) -> bool:
    return name.endswith(MARKDOWN_SUFFIXES)


@dataclass(frozen=True)
class FileEntry:
    name: str
    path: str
    dir: str


@dataclass(frozen=True)
class MarkdownDocument:
    content: str
    filename: str
    path: str | None = None


class FileService:
    """Lists and reads markdown files below a base directory.

    In single-file mode ``markdown_file`` is served by ``read_configured_file``
    and listing still works relative to ``base_dir``.
    """

    def __init__(
        self,
        base_dir: Path,
        markdown_file: Path | None = None,
        ignored_dirs: tuple[str, ...] | list[str] = DEFAULT_IGNORED_DIRS,
    ) -> None:
        self.base_dir = base_dir.resolve()
        self.markdown_file = markdown_file
        self.ignored_dirs = frozenset(ignored_dirs)

    def is_ignored(self, name: str) -> bool:
        """Hidden entries and build/dependency folders are never served."""
        return name.startswith(".") or name in self.ignored_dirs

    def list_markdown_files(self) -> list[FileEntry]:
        """Recursively collect markdown files, sorted by path."""
        try:
            return sorted(self._scan(self.base_dir), key=lambda f: f.path)
        except OSError as exc:
            log_json(logger, logging.ERROR, "file_scan_failed", base_dir=self.base_dir, error=str(exc))
            raise FileServiceError("Failed to scan markdown files") from exc

    def _scan(self, directory: Path) -> list[FileEntry]:
        files: list[FileEntry] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if self.is_ignored(entry.name):
                    continue
                if entry.is_dir(follow_symlinks=False):
                    files.extend(self._scan(Path(entry.path)))
                elif entry.is_file() and is_markdown_file(entry.name):
                    full_path = Path(entry.path)
                    rel_dir = directory.relative_to(self.base_dir).as_posix()
                    files.append(
                        FileEntry(
                            name=entry.name,
                            path=full_path.relative_to(self.base_dir).as_posix(),
                            dir=rel_dir,
                        )
                    )
        return files

    def resolve_path(self, relative_path: str) -> Path:
        """Absolute path for ``relative_path``; rejects anything outside ``base_dir``."""
        full_path = (self.base_dir / relative_path).resolve()
        if not full_path.is_relative_to(self.base_dir):
            raise FileAccessError("Invalid file path", details={"path": relative_path})
        return full_path

    def read_markdown(self, relative_path: str) -> MarkdownDocument:
        full_path = self.resolve_path(relative_path)
        content = self._read(full_path)
        return MarkdownDocument(content=content, filename=full_path.name, path=relative_path)

    def read_configured_file(self) -> MarkdownDocument:
        if self.markdown_file is None:
            raise FileServiceError("Markdown file path not specified")
        content = self._read(self.markdown_file)
        return MarkdownDocument(content=content, filename=self.markdown_file.name)

    def relative_to_base(self, path: Path) -> str | None:
        """Posix path relative to ``base_dir``, or ``None`` when outside it."""
        try:
            return path.resolve().relative_to(self.base_dir).as_posix()
        except ValueError:
            return None

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise FileReadError("Markdown file not found", details={"filename": path.name}) from exc
        except (OSError, UnicodeDecodeError) as exc:
            log_json(logger, logging.ERROR, "markdown_read_failed", path=path, error=str(exc))
            raise FileServiceError("Failed to read markdown file") from exc
