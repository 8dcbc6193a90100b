from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from store_builder.state import Locale


@dataclass
class Settings:
    # Store API
    api_base_url: str = "http://localhost:5050/api"
    api_auth_token: str | None = None  # "Bearer xxx"
    api_timeout: float = 30.0

    # Image uploads
    cloudinary_cloud_name: str = "iniodugboyous"
    cloudinary_upload_preset: str = "digemart"
    max_upload_mb: int = 5

    # Conversation pacing
    typing_delay: float = 0.8
    redirect_delay: float = 2.0
    redirect_path: str = "/findyourplug/dashboard/stores"
    store_domain: str = "digemart.com"

    # Regional rules
    phone_country_code: str = "234"
    enforce_state_list: bool = True

    # Prompt phrasing
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"

    # Server
    host: str = "127.0.0.1"
    port: int = 8002
    port_tries: int = 20
    reload: bool = False
    log_level: str = "info"

    @property
    def phrasing_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def locale(self) -> Locale:
        return Locale(phone_country_code=self.phone_country_code, enforce_states=self.enforce_state_list)


def _to_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _ms_to_seconds(value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        return max(0, int(value)) / 1000
    except ValueError:
        return default


def load_settings() -> Settings:
    load_dotenv()

    return Settings(
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:5050/api"),
        api_auth_token=os.getenv("API_AUTH_TOKEN") or None,
        api_timeout=float(os.getenv("API_TIMEOUT", "30")),
        cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", "iniodugboyous"),
        cloudinary_upload_preset=os.getenv("CLOUDINARY_UPLOAD_PRESET", "digemart"),
        max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "5")),
        typing_delay=_ms_to_seconds(os.getenv("TYPING_DELAY_MS"), 0.8),
        redirect_delay=_ms_to_seconds(os.getenv("REDIRECT_DELAY_MS"), 2.0),
        redirect_path=os.getenv("REDIRECT_PATH", "/findyourplug/dashboard/stores"),
        store_domain=os.getenv("STORE_DOMAIN", "digemart.com"),
        phone_country_code=os.getenv("PHONE_COUNTRY_CODE", "234").lstrip("+"),
        enforce_state_list=_to_bool(os.getenv("ENFORCE_STATE_LIST"), True),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8002")),
        port_tries=int(os.getenv("PORT_TRIES", "20")),
        reload=_to_bool(os.getenv("RELOAD"), False),
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
