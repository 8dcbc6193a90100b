from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from store_builder.state import StoreDraft
from store_builder.validators import format_time


class StorePreview(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    store_type: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    headline: Optional[str] = None
    tagline: Optional[str] = None
    logo: Optional[str] = None
    cover_photo: Optional[str] = None
    hero_image: Optional[str] = None
    theme_id: Optional[int] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    hours: Optional[str] = None


def _hours_text(draft: StoreDraft) -> str | None:
    if not (draft.store_time_open and draft.store_time_close):
        return None
    times = f"{format_time(draft.store_time_open)} - {format_time(draft.store_time_close)}"
    if draft.week_open and draft.week_close:
        return f"{draft.week_open} - {draft.week_close}, {times}"
    return times


def build_preview(draft: StoreDraft, domain: str = "digemart.com") -> StorePreview:
    location = None
    if draft.store_address:
        location = f"{draft.store_address}, {draft.store_location_city}, {draft.store_location_state}"

    return StorePreview(
        name=draft.store_name,
        url=f"{draft.subdomain}.{domain}" if draft.subdomain else None,
        store_type=draft.store_type.label if draft.store_type else None,
        category=f"Category #{draft.store_category_id}" if draft.store_category_id else None,
        description=draft.store_description,
        headline=draft.store_hero_headline,
        tagline=draft.store_hero_tagline,
        logo=draft.store_logo,
        cover_photo=draft.store_cover_photo,
        hero_image=draft.store_hero_image,
        theme_id=draft.selected_theme.id if draft.selected_theme else None,
        email=draft.email,
        phone=draft.phone,
        location=location,
        hours=_hours_text(draft),
    )


def summary_lines(preview: StorePreview) -> list[str]:
    labels = [
        ("Name", preview.name),
        ("Address", preview.url),
        ("Type", preview.store_type),
        ("Category", preview.category),
        ("Description", preview.description),
        ("Headline", preview.headline),
        ("Tagline", preview.tagline),
        ("Email", preview.email),
        ("Phone", preview.phone),
        ("Location", preview.location),
        ("Hours", preview.hours),
    ]
    return [f"- {label}: {value}" for label, value in labels if value]
