from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import aiohttp

from store_builder.config import Settings
from store_builder.errors import BackendError, CreationError, UploadError
from store_builder.state import Category, ImageFile, StoreType, ThemeTemplate

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class StoreBackend(Protocol):
    async def list_categories(self, store_type: Optional[StoreType] = None) -> List[Category]: ...

    async def list_themes(self, active: bool = True, limit: int = 6) -> List[ThemeTemplate]: ...

    async def increment_theme_downloads(self, theme_id: int) -> None: ...

    async def upload_image(self, image: ImageFile, folder: Optional[str] = None) -> str: ...

    async def create_store(self, payload: Dict[str, Any]) -> Any: ...


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        message = body.get("message")
        error = body.get("error")
        if not message and isinstance(error, dict):
            message = error.get("message")
        elif not message and isinstance(error, str):
            message = error
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return fallback


class StoreApiClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.api_base_url.rstrip("/")
        self.auth_token = settings.api_auth_token
        self.timeout = aiohttp.ClientTimeout(total=settings.api_timeout)
        self.upload_url = CLOUDINARY_UPLOAD_URL.format(cloud_name=settings.cloudinary_cloud_name)
        self.upload_preset = settings.cloudinary_upload_preset

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = self.auth_token
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        error_cls: type[BackendError] = BackendError,
        fallback: str = "Request failed",
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, params=params, json=data, headers=self._build_headers()
                ) as resp:
                    try:
                        body = await resp.json(content_type=None)
                    except ValueError:
                        body = None
                    if resp.status >= 400:
                        logger.error("%s %s failed (%s): %s", method, url, resp.status, body)
                        raise error_cls(_error_message(body, fallback), status=resp.status)
                    return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise error_cls(fallback) from e

    async def list_categories(self, store_type: Optional[StoreType] = None) -> List[Category]:
        params: Dict[str, Any] = {"categoryType": "STORE"}
        if store_type:
            params["storeType"] = store_type.value
        body = await self._request("GET", "/categories", params=params, fallback="Failed to load categories")
        return [Category.model_validate(item) for item in _unwrap_list(body)]

    async def list_themes(self, active: bool = True, limit: int = 6) -> List[ThemeTemplate]:
        params = {"isActive": "true" if active else "false", "limit": limit}
        body = await self._request("GET", "/themes", params=params, fallback="Failed to load themes")
        return [ThemeTemplate.model_validate(item) for item in _unwrap_list(body)]

    async def increment_theme_downloads(self, theme_id: int) -> None:
        await self._request("POST", f"/themes/{theme_id}/download", fallback="Failed to record theme download")

    async def upload_image(self, image: ImageFile, folder: Optional[str] = None) -> str:
        form = aiohttp.FormData()
        form.add_field("file", image.data, filename=image.filename, content_type=image.content_type)
        form.add_field("upload_preset", self.upload_preset)
        if folder:
            form.add_field("folder", folder)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.upload_url, data=form) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        logger.error("Image upload failed (%s): %s", resp.status, text)
                        raise UploadError("Failed to upload image", status=resp.status)
                    body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Image upload failed: %s", e)
            raise UploadError("Failed to upload image") from e

        url = (body or {}).get("secure_url") or (body or {}).get("url")
        if not url:
            raise UploadError("Failed to upload image")
        return str(url)

    async def create_store(self, payload: Dict[str, Any]) -> Any:
        body = await self._request(
            "POST",
            "/stores",
            data=payload,
            error_cls=CreationError,
            fallback="Failed to create store. Please try again.",
        )
        if isinstance(body, dict) and body.get("success") is False:
            raise CreationError(_error_message(body, "Failed to create store. Please try again."))
        data = body.get("data") if isinstance(body, dict) else None
        if isinstance(data, dict):
            return data.get("id")
        return None


def _unwrap_list(body: Any) -> list[Any]:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data["items"]
    return []
