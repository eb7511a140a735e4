"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from mdreview.core.config import Settings
from mdreview.core.dom import Element, Text
from mdreview.core.storage import MemoryStorage
from mdreview.main import create_app

README_MD = "## Title\n\nSome body text.\n"

GUIDE_MD = """# Setup Guide

Install the package
and run the server.

- first item
- second item

> quoted advice

```python
print("hello")
```

| Name | Value |
| ---- | ----- |
| port | 3030  |
"""


def find_text(container: Element, needle: str) -> Text:
    """First text node containing ``needle``."""
    for node in container.iter_text():
        if needle in node.data:
            return node
    raise AssertionError(f"no text node contains {needle!r}")


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A served directory with nested, hidden and ignored content."""
    docs = tmp_path / "docs"
    (docs / "guide").mkdir(parents=True)
    (docs / "README.md").write_text(README_MD, encoding="utf-8")
    (docs / "guide" / "setup.md").write_text(GUIDE_MD, encoding="utf-8")
    (docs / "guide" / "notes.markdown").write_text("notes\n", encoding="utf-8")
    (docs / "guide" / "image.png").write_bytes(b"\x89PNG")
    (docs / "node_modules" / "pkg").mkdir(parents=True)
    (docs / "node_modules" / "pkg" / "README.md").write_text("# dependency\n", encoding="utf-8")
    (docs / ".github").mkdir()
    (docs / ".github" / "CONTRIBUTING.md").write_text("# hidden\n", encoding="utf-8")
    return docs


@pytest.fixture
def settings(docs_dir: Path, tmp_path: Path) -> Settings:
    return Settings(
        base_dir=docs_dir,
        storage_path=tmp_path / "profile" / "storage.json",
        watch_enabled=False,
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def app(settings: Settings, storage: MemoryStorage) -> FastAPI:
    return create_app(settings, storage=storage)


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to an app with in-memory profile storage."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
