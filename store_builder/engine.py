from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from store_builder.errors import InvalidTransition, StepUnreachable
from store_builder.state import (
    DAYS_OF_WEEK,
    Category,
    HoursForm,
    Locale,
    LocationForm,
    Step,
    StoreDraft,
    StoreType,
    ThemeRef,
    ThemeTemplate,
    Widget,
)
from store_builder.validators import (
    format_phone_number,
    generate_subdomain,
    is_valid_time,
    validate_email,
    validate_phone,
)


class EventKind(str, Enum):
    ANSWER = "answer"
    ACCEPT = "accept"
    CHANGE = "change"
    SKIP = "skip"


class InputModality(str, Enum):
    FREE_TEXT = "free-text"
    FORM = "form"
    SELECTOR = "selector"
    NONE = "none"


class StepEvent(BaseModel):
    kind: EventKind
    value: Any = None

    @classmethod
    def answer(cls, value: Any) -> "StepEvent":
        return cls(kind=EventKind.ANSWER, value=value)

    @classmethod
    def accept(cls) -> "StepEvent":
        return cls(kind=EventKind.ACCEPT)

    @classmethod
    def change(cls) -> "StepEvent":
        return cls(kind=EventKind.CHANGE)

    @classmethod
    def skip(cls) -> "StepEvent":
        return cls(kind=EventKind.SKIP)


class StepSpec(BaseModel):
    step: Step
    modality: InputModality
    validator: Optional[str] = None
    widget: Optional[Widget] = None
    options: list[str] = []
    placeholder: Optional[str] = None
    multiline: bool = False


class Transition(BaseModel):
    step: Step
    prompt: str
    modality: InputModality
    widget: Optional[Widget] = None


def _text(step: Step, validator: str, placeholder: str, multiline: bool = False) -> StepSpec:
    return StepSpec(
        step=step,
        modality=InputModality.FREE_TEXT,
        validator=validator,
        placeholder=placeholder,
        multiline=multiline,
    )


def _selector(step: Step, validator: str | None, widget: Widget, options: list[str]) -> StepSpec:
    return StepSpec(step=step, modality=InputModality.SELECTOR, validator=validator, widget=widget, options=options)


STEP_SPECS: dict[Step, StepSpec] = {
    Step.SELECT_TYPE: _selector(Step.SELECT_TYPE, "store-type", Widget.TYPE_SELECTOR, [t.value for t in StoreType]),
    Step.CONFIRM_TYPE: _selector(Step.CONFIRM_TYPE, None, Widget.TYPE_CONFIRM, ["accept", "change"]),
    Step.STORE_CATEGORY: _selector(Step.STORE_CATEGORY, "category", Widget.CATEGORY_SELECTOR, []),
    Step.STORE_NAME: _text(Step.STORE_NAME, "text", "Enter your store name..."),
    Step.CONFIRM_SUBDOMAIN: _selector(Step.CONFIRM_SUBDOMAIN, None, Widget.SUBDOMAIN_CONFIRM, ["accept", "change"]),
    Step.EDIT_SUBDOMAIN: _text(Step.EDIT_SUBDOMAIN, "subdomain", "your-store-name"),
    Step.STORE_DESCRIPTION: _text(Step.STORE_DESCRIPTION, "text", "Describe what you offer...", multiline=True),
    Step.STORE_LOGO: _selector(Step.STORE_LOGO, "image-url", Widget.LOGO_UPLOAD, ["upload", "skip"]),
    Step.STORE_COVER: _selector(Step.STORE_COVER, "image-url", Widget.COVER_UPLOAD, ["upload", "skip"]),
    Step.STORE_HERO_IMAGE: _selector(Step.STORE_HERO_IMAGE, "image-url", Widget.HERO_UPLOAD, ["upload", "skip"]),
    Step.HERO_HEADLINE: _text(Step.HERO_HEADLINE, "text", "Welcome to our amazing store!"),
    Step.HERO_TAGLINE: _text(Step.HERO_TAGLINE, "text", "Quality products at great prices", multiline=True),
    Step.STORE_EMAIL: _text(Step.STORE_EMAIL, "email", "your@email.com"),
    Step.STORE_PHONE: _text(Step.STORE_PHONE, "phone", "08012345678"),
    Step.STORE_LOCATION: StepSpec(
        step=Step.STORE_LOCATION, modality=InputModality.FORM, validator="location", widget=Widget.LOCATION_FORM
    ),
    Step.STORE_HOURS: StepSpec(
        step=Step.STORE_HOURS, modality=InputModality.FORM, validator="hours", widget=Widget.HOURS_FORM
    ),
    Step.THEME_SELECTION: _selector(Step.THEME_SELECTION, "theme", Widget.THEME_SELECTOR, []),
    Step.REVIEW: _selector(Step.REVIEW, "store-id", Widget.REVIEW_ACTIONS, ["create", "restart"]),
    Step.COMPLETE: StepSpec(step=Step.COMPLETE, modality=InputModality.NONE),
}

TRANSITIONS: dict[Step, dict[EventKind, Step]] = {
    Step.SELECT_TYPE: {EventKind.ANSWER: Step.STORE_CATEGORY},
    Step.CONFIRM_TYPE: {EventKind.ACCEPT: Step.STORE_CATEGORY, EventKind.CHANGE: Step.SELECT_TYPE},
    Step.STORE_CATEGORY: {EventKind.ANSWER: Step.STORE_NAME},
    Step.STORE_NAME: {EventKind.ANSWER: Step.CONFIRM_SUBDOMAIN},
    Step.CONFIRM_SUBDOMAIN: {EventKind.ACCEPT: Step.STORE_DESCRIPTION, EventKind.CHANGE: Step.EDIT_SUBDOMAIN},
    Step.EDIT_SUBDOMAIN: {EventKind.ANSWER: Step.STORE_DESCRIPTION},
    Step.STORE_DESCRIPTION: {EventKind.ANSWER: Step.STORE_LOGO},
    Step.STORE_LOGO: {EventKind.ANSWER: Step.STORE_COVER, EventKind.SKIP: Step.STORE_COVER},
    Step.STORE_COVER: {EventKind.ANSWER: Step.STORE_HERO_IMAGE, EventKind.SKIP: Step.STORE_HERO_IMAGE},
    Step.STORE_HERO_IMAGE: {EventKind.ANSWER: Step.HERO_HEADLINE, EventKind.SKIP: Step.HERO_HEADLINE},
    Step.HERO_HEADLINE: {EventKind.ANSWER: Step.HERO_TAGLINE},
    Step.HERO_TAGLINE: {EventKind.ANSWER: Step.STORE_EMAIL},
    Step.STORE_EMAIL: {EventKind.ANSWER: Step.STORE_PHONE},
    Step.STORE_PHONE: {EventKind.ANSWER: Step.STORE_LOCATION},
    Step.STORE_LOCATION: {EventKind.ANSWER: Step.STORE_HOURS},
    Step.STORE_HOURS: {EventKind.ANSWER: Step.THEME_SELECTION},
    Step.THEME_SELECTION: {EventKind.ANSWER: Step.REVIEW},
    Step.REVIEW: {EventKind.ANSWER: Step.COMPLETE},
    Step.COMPLETE: {},
}

PROMPTS: dict[tuple[Step, EventKind], str] = {
    (Step.SELECT_TYPE, EventKind.ANSWER): "Perfect! {type_label} it is. 🎯 What category best describes your store?",
    (Step.CONFIRM_TYPE, EventKind.ACCEPT): "Awesome! 🎯 What category best describes your store?",
    (Step.CONFIRM_TYPE, EventKind.CHANGE): "No problem! What type of store would you like to create?",
    (Step.STORE_CATEGORY, EventKind.ANSWER): "Perfect choice! 🚀 What's your store name?",
    (Step.STORE_NAME, EventKind.ANSWER): (
        '"{store_name}" - I love it! 💫 Your store will be at {subdomain}.{domain}. '
        "Want to customize the subdomain?"
    ),
    (Step.CONFIRM_SUBDOMAIN, EventKind.ACCEPT): "Perfect! Now, tell me what your store is all about.",
    (Step.CONFIRM_SUBDOMAIN, EventKind.CHANGE): "Great! What subdomain would you like?",
    (Step.EDIT_SUBDOMAIN, EventKind.ANSWER): (
        "Got it! Your store will be at {subdomain}.{domain}. Now, tell me what your store is all about."
    ),
    (Step.STORE_DESCRIPTION, EventKind.ANSWER): "Great description! 🎨 Would you like to upload a logo?",
    (Step.STORE_LOGO, EventKind.ANSWER): "Awesome! 📸 Want to add a cover photo for your store page?",
    (Step.STORE_LOGO, EventKind.SKIP): "No problem! 📸 Want to add a cover photo?",
    (Step.STORE_COVER, EventKind.ANSWER): "Great! 🖼️ How about a hero image for your homepage?",
    (Step.STORE_COVER, EventKind.SKIP): "Okay! 🖼️ How about a hero image?",
    (Step.STORE_HERO_IMAGE, EventKind.ANSWER): "Perfect! ✨ Let's create a catchy headline for your homepage.",
    (Step.STORE_HERO_IMAGE, EventKind.SKIP): "Alright! ✨ Let's create a headline for your homepage.",
    (Step.HERO_HEADLINE, EventKind.ANSWER): "Love it! 💫 Now add a short tagline to complement it:",
    (Step.HERO_TAGLINE, EventKind.ANSWER): "Perfect combo! 📧 What's the best email to reach you at?",
    (Step.STORE_EMAIL, EventKind.ANSWER): "Got it! 📱 And your phone number?",
    (Step.STORE_PHONE, EventKind.ANSWER): "Perfect! 📍 Now let's get your location details.",
    (Step.STORE_LOCATION, EventKind.ANSWER): "Excellent! ⏰ What are your operating hours?",
    (Step.STORE_HOURS, EventKind.ANSWER): "Excellent! 🎨 Now let's choose a theme for your store.",
    (Step.THEME_SELECTION, EventKind.ANSWER): "Great choice! 🎊 Let me show you your store preview.",
    (Step.REVIEW, EventKind.ANSWER): "🎉 Congratulations! Your store has been created successfully!",
}

GREETING = (
    "Hi! 👋 Welcome to the store builder. Let's create something amazing together! "
    "What type of store would you like to create?"
)
GREETING_WITH_TYPE = (
    "Hi! 👋 I see you want to create a {type_label}. If you'd prefer to create a listing only, "
    'click "Change Type". Ready to get started?'
)

_IMAGE_LABELS = {Step.STORE_LOGO: "Logo", Step.STORE_COVER: "Cover", Step.STORE_HERO_IMAGE: "Hero"}
_IMAGE_FIELDS = {
    Step.STORE_LOGO: "store_logo",
    Step.STORE_COVER: "store_cover_photo",
    Step.STORE_HERO_IMAGE: "store_hero_image",
}
IMAGE_FOLDERS = {
    Step.STORE_LOGO: "stores/logos",
    Step.STORE_COVER: "stores/covers",
    Step.STORE_HERO_IMAGE: "stores/heroes",
}
_TEXT_FIELDS = {
    Step.STORE_DESCRIPTION: "store_description",
    Step.HERO_HEADLINE: "store_hero_headline",
    Step.HERO_TAGLINE: "store_hero_tagline",
    Step.STORE_EMAIL: "email",
}


def _check_tables() -> None:
    for step in Step:
        if step not in STEP_SPECS or step not in TRANSITIONS:
            raise StepUnreachable(f"No handler declared for step '{step.value}'")
        for kind in TRANSITIONS[step]:
            if (step, kind) not in PROMPTS:
                raise StepUnreachable(f"No prompt declared for '{step.value}' on '{kind.value}'")


_check_tables()


def get_spec(step: Step) -> StepSpec:
    spec = STEP_SPECS.get(step)
    if spec is None:
        raise StepUnreachable(f"Unknown step '{step}'")
    return spec


def accepts(step: Step, kind: EventKind) -> bool:
    return kind in TRANSITIONS.get(step, {})


def initial_step(store_type: StoreType | None) -> Step:
    return Step.CONFIRM_TYPE if store_type else Step.SELECT_TYPE


def greeting(store_type: StoreType | None) -> str:
    if store_type:
        return GREETING_WITH_TYPE.format(type_label=store_type.label)
    return GREETING


def placeholder_for(step: Step, disabled: bool) -> str:
    if disabled:
        return "Please select an option above..."
    return get_spec(step).placeholder or "Type your answer..."


def next_step(
    current: Step,
    event: StepEvent,
    draft: StoreDraft | None = None,
    *,
    domain: str = "digemart.com",
) -> Transition:
    successors = TRANSITIONS.get(current)
    if successors is None:
        raise StepUnreachable(f"Unknown step '{current}'")
    target = successors.get(event.kind)
    if target is None:
        raise InvalidTransition(current.value, event.kind.value)

    draft = draft or StoreDraft()
    context = {
        "type_label": draft.store_type.label if draft.store_type else "Store",
        "store_name": draft.store_name or "",
        "subdomain": draft.subdomain or "",
        "domain": domain,
    }
    spec = get_spec(target)
    return Transition(
        step=target,
        prompt=PROMPTS[(current, event.kind)].format(**context),
        modality=spec.modality,
        widget=spec.widget,
    )


def validate_input(step: Step, event: StepEvent, locale: Locale | None = None) -> tuple[bool, Any, str | None]:
    if not accepts(step, event.kind):
        raise InvalidTransition(step.value, event.kind.value)
    if event.kind is not EventKind.ANSWER:
        return True, None, None

    locale = locale or Locale()
    validator = get_spec(step).validator
    raw = event.value

    if validator in {"text", "email", "phone", "subdomain"}:
        candidate = str(raw or "").strip()
        if not candidate:
            return False, None, "Please type a response first."
        if validator == "email":
            if not validate_email(candidate):
                return False, None, "Please enter a valid email address"
            return True, candidate, None
        if validator == "phone":
            if not validate_phone(candidate, locale.phone_country_code):
                return False, None, "Please enter a valid phone number (e.g., 08012345678)"
            return True, format_phone_number(candidate, locale.phone_country_code, locale.local_prefix), None
        if validator == "subdomain":
            slug = generate_subdomain(candidate)
            if not slug:
                return False, None, "Subdomain must contain letters or numbers"
            return True, slug, None
        return True, candidate, None

    if validator == "store-type":
        try:
            return True, StoreType(raw), None
        except ValueError:
            return False, None, f"Choose one of: {', '.join(t.value for t in StoreType)}"

    if validator == "category":
        try:
            return True, Category.model_validate(raw), None
        except ValidationError:
            return False, None, "Please choose a category"

    if validator == "image-url":
        url = str(raw or "").strip()
        if not url:
            return False, None, "Failed to upload image"
        return True, url, None

    if validator == "location":
        try:
            form = LocationForm.model_validate(raw)
        except ValidationError:
            return False, None, "Please fill in all location fields"
        address, city = form.address.strip(), form.city.strip()
        if not address or not form.state.strip() or not city:
            return False, None, "Please fill in all location fields"
        state = locale.match_state(form.state)
        if state is None:
            return False, None, "Please select a valid state"
        return True, LocationForm(address=address, state=state, city=city), None

    if validator == "hours":
        try:
            form = HoursForm.model_validate(raw)
        except ValidationError:
            return False, None, "Please choose valid operating hours"
        if form.week_open not in DAYS_OF_WEEK or form.week_close not in DAYS_OF_WEEK:
            return False, None, "Please choose valid operating days"
        if not is_valid_time(form.open_time) or not is_valid_time(form.close_time):
            return False, None, "Please enter times as HH:MM"
        return True, form, None

    if validator == "theme":
        try:
            return True, ThemeTemplate.model_validate(raw), None
        except ValidationError:
            return False, None, "Please choose a theme"

    if validator == "store-id":
        if raw is None:
            return False, None, "Failed to create store. Please try again."
        return True, raw, None

    raise StepUnreachable(f"Step '{step.value}' has no validator for answers")


def apply_step_result(
    draft: StoreDraft,
    step: Step,
    value: Any,
    kind: EventKind = EventKind.ANSWER,
) -> StoreDraft:
    if step is Step.CONFIRM_TYPE and kind is EventKind.CHANGE:
        return draft.model_copy(update={"store_type": None})
    if kind is not EventKind.ANSWER:
        return draft.model_copy()

    if step is Step.SELECT_TYPE:
        return draft.model_copy(update={"store_type": StoreType(value)})
    if step is Step.STORE_CATEGORY:
        category_id = value.id if isinstance(value, Category) else int(value)
        return draft.model_copy(update={"store_category_id": category_id})
    if step is Step.STORE_NAME:
        return draft.model_copy(update={"store_name": value, "subdomain": generate_subdomain(value)})
    if step is Step.EDIT_SUBDOMAIN:
        return draft.model_copy(update={"subdomain": generate_subdomain(value)})
    if step in _TEXT_FIELDS:
        return draft.model_copy(update={_TEXT_FIELDS[step]: value})
    if step in _IMAGE_FIELDS:
        return draft.model_copy(update={_IMAGE_FIELDS[step]: value})
    if step is Step.STORE_PHONE:
        return draft.model_copy(update={"phone": value})
    if step is Step.STORE_LOCATION:
        return draft.model_copy(
            update={
                "store_address": value.address,
                "store_location_state": value.state,
                "store_location_city": value.city,
            }
        )
    if step is Step.STORE_HOURS:
        return draft.model_copy(
            update={
                "store_time_open": value.open_time,
                "store_time_close": value.close_time,
                "week_open": value.week_open,
                "week_close": value.week_close,
            }
        )
    if step is Step.THEME_SELECTION:
        theme_id = value.id if isinstance(value, (ThemeTemplate, ThemeRef)) else int(value)
        return draft.model_copy(update={"selected_theme": ThemeRef(id=theme_id)})
    if step is Step.REVIEW:
        return draft.model_copy()
    raise StepUnreachable(f"Step '{step.value}' has no draft mapping")


def user_label(step: Step, event: StepEvent) -> str:
    """Text echoed into the transcript for the user's side of a turn."""
    kind, value = event.kind, event.value
    if step is Step.CONFIRM_TYPE:
        return "Yes, let's go!" if kind is EventKind.ACCEPT else "Change type"
    if step is Step.CONFIRM_SUBDOMAIN:
        return "No, looks good" if kind is EventKind.ACCEPT else "Yes, customize it"
    if step in _IMAGE_LABELS:
        label = _IMAGE_LABELS[step]
        return f"Skip {label.lower()}" if kind is EventKind.SKIP else f"✓ {label} uploaded"
    if step is Step.SELECT_TYPE:
        return StoreType(value).label
    if step is Step.STORE_CATEGORY:
        return value.name
    if step is Step.STORE_LOCATION:
        return f"{value.address}, {value.city}, {value.state}"
    if step is Step.STORE_HOURS:
        return f"{value.week_open} - {value.week_close}, {value.open_time} - {value.close_time}"
    if step is Step.THEME_SELECTION:
        return f"Selected: {value.name}"
    if step is Step.REVIEW:
        return "Create Store"
    return str(value)
