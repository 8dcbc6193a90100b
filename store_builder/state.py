from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

NIGERIAN_STATES = [
    "Abia", "Adamawa", "Akwa Ibom", "Anambra", "Bauchi", "Bayelsa", "Benue", "Borno",
    "Cross River", "Delta", "Ebonyi", "Edo", "Ekiti", "Enugu", "FCT", "Gombe", "Imo",
    "Jigawa", "Kaduna", "Kano", "Katsina", "Kebbi", "Kogi", "Kwara", "Lagos", "Nasarawa",
    "Niger", "Ogun", "Ondo", "Osun", "Oyo", "Plateau", "Rivers", "Sokoto", "Taraba",
    "Yobe", "Zamfara",
]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class StoreType(str, Enum):
    EXTERNAL = "EXTERNAL"
    INTERNAL = "INTERNAL"

    @property
    def label(self) -> str:
        return "E-commerce Store" if self is StoreType.EXTERNAL else "Business Listing"


class Step(str, Enum):
    SELECT_TYPE = "select-type"
    CONFIRM_TYPE = "confirm-type"
    STORE_CATEGORY = "store-category"
    STORE_NAME = "store-name"
    CONFIRM_SUBDOMAIN = "confirm-subdomain"
    EDIT_SUBDOMAIN = "edit-subdomain"
    STORE_DESCRIPTION = "store-description"
    STORE_LOGO = "store-logo"
    STORE_COVER = "store-cover"
    STORE_HERO_IMAGE = "store-hero-image"
    HERO_HEADLINE = "hero-headline"
    HERO_TAGLINE = "hero-tagline"
    STORE_EMAIL = "store-email"
    STORE_PHONE = "store-phone"
    STORE_LOCATION = "store-location"
    STORE_HOURS = "store-hours"
    THEME_SELECTION = "theme-selection"
    REVIEW = "review"
    COMPLETE = "complete"


class Speaker(str, Enum):
    BOT = "bot"
    USER = "user"


class Widget(str, Enum):
    TYPE_SELECTOR = "type-selector"
    TYPE_CONFIRM = "type-confirm"
    CATEGORY_SELECTOR = "category-selector"
    SUBDOMAIN_CONFIRM = "subdomain-confirm"
    LOGO_UPLOAD = "logo-upload"
    COVER_UPLOAD = "cover-upload"
    HERO_UPLOAD = "hero-upload"
    LOCATION_FORM = "location-form"
    HOURS_FORM = "hours-form"
    THEME_SELECTOR = "theme-selector"
    REVIEW_ACTIONS = "review-actions"


class Category(ApiModel):
    id: int
    name: str


class ThemeTemplate(ApiModel):
    id: int
    name: str
    category: str = ""
    is_premium: bool = False
    is_default: bool = False
    preview: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    rating: float = 0
    downloads: int = 0
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True


class ThemeRef(ApiModel):
    id: int


class ImageFile(BaseModel):
    filename: str
    content_type: str
    data: bytes = Field(repr=False)


class LocationForm(ApiModel):
    address: str = ""
    state: str = ""
    city: str = ""


class HoursForm(ApiModel):
    open_time: str = "09:00"
    close_time: str = "17:00"
    week_open: str = "Monday"
    week_close: str = "Friday"


class StoreDraft(ApiModel):
    store_type: Optional[StoreType] = None
    store_category_id: Optional[int] = None
    store_name: Optional[str] = None
    subdomain: Optional[str] = None
    store_description: Optional[str] = None
    store_logo: Optional[str] = None
    store_cover_photo: Optional[str] = None
    store_hero_image: Optional[str] = None
    store_hero_headline: Optional[str] = None
    store_hero_tagline: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    store_address: Optional[str] = None
    store_location_state: Optional[str] = None
    store_location_city: Optional[str] = None
    store_time_open: Optional[str] = None
    store_time_close: Optional[str] = None
    week_open: Optional[str] = None
    week_close: Optional[str] = None
    selected_theme: Optional[ThemeRef] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class Locale(BaseModel):
    phone_country_code: str = "234"
    local_prefix: str = "0"
    states: List[str] = Field(default_factory=lambda: list(NIGERIAN_STATES))
    enforce_states: bool = True

    def match_state(self, value: str) -> str | None:
        candidate = (value or "").strip()
        if not candidate:
            return None
        if not self.enforce_states:
            return candidate
        for state in self.states:
            if state.lower() == candidate.lower():
                return state
        return None


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    speaker: Speaker
    text: str
    widget: Optional[Widget] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Transcript(BaseModel):
    messages: List[Message] = Field(default_factory=list)

    def append(self, speaker: Speaker, text: str, widget: Widget | None = None) -> Message:
        message = Message(speaker=speaker, text=text, widget=widget)
        self.messages.append(message)
        return message

    def add_bot(self, text: str, widget: Widget | None = None) -> Message:
        return self.append(Speaker.BOT, text, widget)

    def add_user(self, text: str) -> Message:
        return self.append(Speaker.USER, text)

    def last_bot(self) -> Message | None:
        for message in reversed(self.messages):
            if message.speaker is Speaker.BOT:
                return message
        return None

    def clear(self) -> None:
        self.messages = []


class BuilderSession(BaseModel):
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    initial_store_type: Optional[StoreType] = None

    step: Step
    draft: StoreDraft = Field(default_factory=StoreDraft)
    transcript: Transcript = Field(default_factory=Transcript)
    location_form: Optional[LocationForm] = None
    hours_form: Optional[HoursForm] = None

    input_disabled: bool = True
    is_typing: bool = False
    is_creating: bool = False
    is_uploading: bool = False
    validation_error: Optional[str] = None

    generation: int = 0
    store_id: Optional[Any] = None
    redirect_to: Optional[str] = None
    prompt_cache: dict[str, str] = Field(default_factory=dict, exclude=True)

    @property
    def busy(self) -> bool:
        return self.is_typing or self.is_uploading or self.is_creating
