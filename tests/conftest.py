from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from store_builder.config import Settings
from store_builder.errors import BackendError, CreationError, UploadError
from store_builder.orchestrator import StoreBuilder
from store_builder.state import Category, ImageFile, StoreType, ThemeTemplate

CATEGORIES = [Category(id=3, name="Food & Drinks"), Category(id=7, name="Fashion")]
THEMES = [
    ThemeTemplate(id=12, name="Bakery Warm", category="food", is_default=True),
    ThemeTemplate(id=14, name="Minimal", category="general", is_premium=True, price=5000),
]


class FakeBackend:
    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.uploads: list[tuple[str, Optional[str]]] = []
        self.downloads: list[int] = []
        self.category_calls: list[Optional[StoreType]] = []

        self.store_id: Any = 99
        self.create_error: Optional[str] = None
        self.upload_error: Optional[str] = None
        self.download_error: Optional[str] = None

        # set to hold create_store/upload_image until the test releases it
        self.gate: Optional[asyncio.Event] = None

    async def list_categories(self, store_type: Optional[StoreType] = None) -> list[Category]:
        self.category_calls.append(store_type)
        return list(CATEGORIES)

    async def list_themes(self, active: bool = True, limit: int = 6) -> list[ThemeTemplate]:
        return THEMES[:limit]

    async def increment_theme_downloads(self, theme_id: int) -> None:
        self.downloads.append(theme_id)
        if self.download_error:
            raise BackendError(self.download_error)

    async def upload_image(self, image: ImageFile, folder: Optional[str] = None) -> str:
        if self.gate:
            await self.gate.wait()
        if self.upload_error:
            raise UploadError(self.upload_error)
        self.uploads.append((image.filename, folder))
        return f"https://cdn.example.com/{folder}/{image.filename}"

    async def create_store(self, payload: dict[str, Any]) -> Any:
        if self.gate:
            await self.gate.wait()
        self.created.append(payload)
        if self.create_error:
            raise CreationError(self.create_error)
        return self.store_id


@pytest.fixture
def settings() -> Settings:
    return Settings(typing_delay=0, redirect_delay=0, gemini_api_key=None)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def builder(backend: FakeBackend, settings: Settings) -> StoreBuilder:
    return StoreBuilder(backend, settings)


def png(name: str = "logo.png", size: int = 128) -> ImageFile:
    return ImageFile(filename=name, content_type="image/png", data=b"\x89PNG" + b"0" * size)
