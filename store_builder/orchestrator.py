from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

from store_builder import engine
from store_builder.client import StoreBackend
from store_builder.config import Settings
from store_builder.engine import IMAGE_FOLDERS, InputModality, StepEvent, Transition
from store_builder.errors import BackendError, InactiveWidget
from store_builder.graph import run_turn
from store_builder.phrasing import PromptWriter
from store_builder.state import (
    BuilderSession,
    Category,
    HoursForm,
    ImageFile,
    LocationForm,
    Message,
    Step,
    StoreDraft,
    StoreType,
    ThemeTemplate,
)
from store_builder.validators import validate_image_file

logger = logging.getLogger(__name__)

CREATE_FAILED = "Failed to create store. Please try again."

REQUIRED_FIELDS = [
    ("store_name", "storeName", "store name"),
    ("email", "email", "email"),
    ("store_address", "storeAddress", "address"),
    ("store_location_state", "storeLocationState", "state"),
    ("store_location_city", "storeLocationCity", "city"),
    ("store_type", "storeType", "store type"),
]

OPTIONAL_FIELDS = [
    ("phone", "phone"),
    ("subdomain", "subdomain"),
    ("store_category_id", "storeCategoryId"),
    ("store_time_open", "storeTimeOpen"),
    ("store_time_close", "storeTimeClose"),
    ("week_open", "storeWeekOpen"),
    ("week_close", "storeWeekClose"),
    ("store_description", "storeDescription"),
    ("store_logo", "logo"),
    ("store_cover_photo", "storeCoverPhoto"),
    ("store_hero_image", "storeHeroImage"),
    ("store_hero_headline", "storeHeroHeadline"),
    ("store_hero_tagline", "storeHeroTagline"),
]


def missing_required(draft: StoreDraft) -> list[str]:
    return [label for field, _, label in REQUIRED_FIELDS if not getattr(draft, field)]


def _check_fields(form: type[LocationForm] | type[HoursForm], fields: dict[str, Any]) -> None:
    unknown = sorted(set(fields) - set(form.model_fields))
    if unknown:
        raise ValueError(f"Unknown {form.__name__} field(s): {', '.join(unknown)}")


def build_payload(draft: StoreDraft) -> dict[str, Any]:
    """Map the draft onto the store-creation DTO; optional keys only when set."""
    payload: dict[str, Any] = {}
    for field, key, _ in REQUIRED_FIELDS:
        value = getattr(draft, field)
        payload[key] = value.value if isinstance(value, StoreType) else value
    for field, key in OPTIONAL_FIELDS:
        value = getattr(draft, field)
        if value:
            payload[key] = value
    if draft.selected_theme:
        payload["themeId"] = draft.selected_theme.id
    return payload


class StoreBuilder:
    """Drives one conversational store-creation session.

    Every public coroutine is a user action. Actions arriving while the
    session is busy (typing, uploading or creating) are ignored and return
    ``False``; actions for a widget whose step is not current raise
    ``InactiveWidget``. Results of awaits that finish after a restart are
    discarded by comparing ``session.generation``.
    """

    def __init__(
        self,
        backend: StoreBackend,
        settings: Settings | None = None,
        *,
        initial_store_type: StoreType | None = None,
        phraser: PromptWriter | None = None,
        on_redirect: Optional[Callable[[str], Any]] = None,
    ):
        self.backend = backend
        self.settings = settings or Settings()
        self.phraser = phraser or PromptWriter(self.settings.gemini_api_key, self.settings.gemini_model)
        self.on_redirect = on_redirect
        self.session = BuilderSession(
            initial_store_type=initial_store_type,
            step=engine.initial_step(initial_store_type),
            draft=StoreDraft(store_type=initial_store_type),
        )
        self._locale = self.settings.locale
        self._background: set[asyncio.Task] = set()
        self._redirect_task: asyncio.Task | None = None

    # -- lifecycle -----------------------------------------------------

    async def start(self) -> bool:
        s = self.session
        if s.transcript.messages or s.busy:
            return False
        logger.info("Session %s started at %s", s.session_id, s.step.value)
        await self._greet(s.initial_store_type)
        return True

    async def restart(self) -> None:
        s = self.session
        s.generation += 1
        if self._redirect_task and not self._redirect_task.done():
            self._redirect_task.cancel()
        self._redirect_task = None

        s.transcript.clear()
        s.draft = StoreDraft()
        s.location_form = None
        s.hours_form = None
        s.prompt_cache.clear()
        s.validation_error = None
        s.is_typing = False
        s.is_uploading = False
        s.is_creating = False
        s.store_id = None
        s.redirect_to = None
        s.step = Step.SELECT_TYPE
        s.input_disabled = True

        logger.info("Session %s restarted (generation %s)", s.session_id, s.generation)
        await self._greet(None)

    async def wait_background(self) -> None:
        tasks = list(self._background)
        if self._redirect_task:
            tasks.append(self._redirect_task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -- widget data ---------------------------------------------------

    async def list_categories(self) -> list[Category]:
        return await self.backend.list_categories(self.session.draft.store_type)

    async def list_themes(self) -> list[ThemeTemplate]:
        return await self.backend.list_themes(active=True, limit=6)

    def is_widget_active(self, message: Message) -> bool:
        s = self.session
        if message.widget is None or s.busy:
            return False
        last = s.transcript.last_bot()
        if last is None or last.id != message.id:
            return False
        return engine.get_spec(s.step).widget is message.widget

    # -- actions -------------------------------------------------------

    async def submit_text(self, raw: str) -> bool:
        s = self.session
        if s.busy:
            return self._ignored("message")
        if engine.get_spec(s.step).modality is not InputModality.FREE_TEXT:
            raise InactiveWidget("message", s.step.value)
        return await self._advance("message", StepEvent.answer(raw), label=(raw or "").strip())

    async def select_type(self, store_type: StoreType | str) -> bool:
        return await self._action("select-type", (Step.SELECT_TYPE,), StepEvent.answer(store_type))

    async def confirm_type(self) -> bool:
        return await self._action("confirm-type", (Step.CONFIRM_TYPE,), StepEvent.accept())

    async def change_type(self) -> bool:
        return await self._action("change-type", (Step.CONFIRM_TYPE,), StepEvent.change())

    async def select_category(self, category: Category | dict) -> bool:
        return await self._action("select-category", (Step.STORE_CATEGORY,), StepEvent.answer(category))

    async def confirm_subdomain(self, customize: bool) -> bool:
        event = StepEvent.change() if customize else StepEvent.accept()
        return await self._action("confirm-subdomain", (Step.CONFIRM_SUBDOMAIN,), event)

    async def skip_image(self) -> bool:
        return await self._action("skip-image", tuple(IMAGE_FOLDERS), StepEvent.skip())

    async def upload_image(self, image: ImageFile) -> bool:
        s = self.session
        if s.busy:
            return self._ignored("upload")
        self._require("upload", tuple(IMAGE_FOLDERS))

        error = validate_image_file(image, self.settings.max_upload_mb)
        if error:
            s.validation_error = error
            return False

        step, generation = s.step, s.generation
        s.validation_error = None
        s.is_uploading = True
        try:
            url = await self.backend.upload_image(image, IMAGE_FOLDERS[step])
        except BackendError as e:
            logger.warning("Upload failed for session %s: %s", s.session_id, e.message)
            if s.generation == generation:
                s.validation_error = e.message or "Failed to upload image"
            return False
        finally:
            if s.generation == generation:
                s.is_uploading = False

        if s.generation != generation or s.step is not step:
            logger.warning("Discarding stale upload result for session %s", s.session_id)
            return False
        return await self._advance("upload", StepEvent.answer(url))

    def update_location_form(self, **fields: str) -> LocationForm:
        s = self.session
        self._require("location", (Step.STORE_LOCATION,))
        _check_fields(LocationForm, fields)
        current = s.location_form or LocationForm()
        s.location_form = LocationForm.model_validate({**current.model_dump(), **fields})
        return s.location_form

    async def submit_location(self) -> bool:
        s = self.session
        return await self._action("location", (Step.STORE_LOCATION,), StepEvent.answer(s.location_form))

    def update_hours_form(self, **fields: str) -> HoursForm:
        s = self.session
        self._require("hours", (Step.STORE_HOURS,))
        _check_fields(HoursForm, fields)
        current = s.hours_form or HoursForm()
        s.hours_form = HoursForm.model_validate({**current.model_dump(), **fields})
        return s.hours_form

    async def submit_hours(self) -> bool:
        s = self.session
        return await self._action("hours", (Step.STORE_HOURS,), StepEvent.answer(s.hours_form))

    async def select_theme(self, theme: ThemeTemplate | dict) -> bool:
        s = self.session
        if s.busy:
            return self._ignored("select-theme")
        self._require("select-theme", (Step.THEME_SELECTION,))
        transition = self._accept(StepEvent.answer(theme))
        if transition is None:
            return False
        self._spawn(self._increment_downloads(s.draft.selected_theme.id))
        await self._reply(transition)
        return True

    async def complete(self) -> bool:
        s = self.session
        if s.busy:
            return self._ignored("complete")
        self._require("complete", (Step.REVIEW,))

        missing = missing_required(s.draft)
        if missing:
            s.validation_error = f"Missing required details: {', '.join(missing)}"
            return False

        payload = build_payload(s.draft)
        generation = s.generation
        s.validation_error = None
        s.transcript.add_user(engine.user_label(Step.REVIEW, StepEvent.answer(None)))
        s.is_creating = True
        s.is_typing = True
        s.input_disabled = True
        try:
            store_id = await self.backend.create_store(payload)
        except BackendError as e:
            if s.generation != generation:
                logger.warning("Discarding stale creation failure for session %s", s.session_id)
                return False
            message = e.message or CREATE_FAILED
            logger.warning("Store creation failed for session %s: %s", s.session_id, message)
            s.transcript.add_bot(f"❌ {message}", engine.get_spec(Step.REVIEW).widget)
            s.validation_error = message
            return False
        finally:
            if s.generation == generation:
                s.is_creating = False
                s.is_typing = False

        if s.generation != generation:
            logger.warning("Discarding stale creation result for session %s", s.session_id)
            return False

        transition = engine.next_step(
            Step.REVIEW, StepEvent.answer(store_id), s.draft, domain=self.settings.store_domain
        )
        s.store_id = store_id
        s.transcript.add_bot(transition.prompt, transition.widget)
        self._enter(transition.step)
        logger.info("Session %s created store %s", s.session_id, store_id)
        self._redirect_task = asyncio.create_task(self._redirect_after(generation))
        return True

    # -- internals -----------------------------------------------------

    def _ignored(self, action: str) -> bool:
        logger.debug("Ignoring %s while session %s is busy", action, self.session.session_id)
        return False

    def _require(self, action: str, steps: tuple[Step, ...]) -> None:
        if self.session.step not in steps:
            raise InactiveWidget(action, self.session.step.value)

    async def _action(self, action: str, steps: tuple[Step, ...], event: StepEvent) -> bool:
        if self.session.busy:
            return self._ignored(action)
        self._require(action, steps)
        return await self._advance(action, event)

    async def _advance(self, action: str, event: StepEvent, label: str | None = None) -> bool:
        if self.session.busy:
            return self._ignored(action)
        transition = self._accept(event, label)
        if transition is None:
            return False
        await self._reply(transition)
        return True

    def _accept(self, event: StepEvent, label: str | None = None) -> Transition | None:
        s = self.session
        turn = run_turn(s.step, event, s.draft, locale=self._locale, domain=self.settings.store_domain)
        if turn.error:
            s.validation_error = turn.error
            return None

        s.validation_error = None
        if label is None:
            label = engine.user_label(s.step, StepEvent(kind=event.kind, value=turn.normalized))
        s.transcript.add_user(label)
        s.draft = turn.draft
        return turn.transition

    async def _reply(self, transition: Transition) -> None:
        s = self.session
        generation = s.generation
        s.input_disabled = True
        s.is_typing = True
        await asyncio.sleep(self.settings.typing_delay)
        if s.generation != generation:
            logger.warning("Discarding stale reply for session %s", s.session_id)
            return

        text = await self.phraser.render(s, transition.step, transition.prompt)
        if s.generation != generation:
            return
        s.is_typing = False
        s.transcript.add_bot(text, transition.widget)
        self._enter(transition.step)

    async def _greet(self, store_type: StoreType | None) -> None:
        step = engine.initial_step(store_type)
        await self._reply(
            Transition(
                step=step,
                prompt=engine.greeting(store_type),
                modality=engine.get_spec(step).modality,
                widget=engine.get_spec(step).widget,
            )
        )

    def _enter(self, step: Step) -> None:
        s = self.session
        s.step = step
        s.location_form = LocationForm() if step is Step.STORE_LOCATION else None
        s.hours_form = HoursForm() if step is Step.STORE_HOURS else None
        s.input_disabled = engine.get_spec(step).modality is not InputModality.FREE_TEXT

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _increment_downloads(self, theme_id: int) -> None:
        try:
            await self.backend.increment_theme_downloads(theme_id)
        except BackendError as e:
            logger.warning("Failed to record download for theme %s: %s", theme_id, e.message)

    async def _redirect_after(self, generation: int) -> None:
        await asyncio.sleep(self.settings.redirect_delay)
        s = self.session
        if s.generation != generation:
            return
        s.redirect_to = self.settings.redirect_path
        logger.info("Session %s redirecting to %s", s.session_id, s.redirect_to)
        if self.on_redirect:
            self.on_redirect(s.redirect_to)
