from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ValidationError

from store_builder import engine
from store_builder.client import StoreApiClient, StoreBackend
from store_builder.config import Settings, load_settings
from store_builder.errors import BackendError, InactiveWidget, InvalidTransition
from store_builder.orchestrator import StoreBuilder
from store_builder.preview import build_preview, summary_lines
from store_builder.state import HoursForm, ImageFile, LocationForm, Step, StoreType
from store_builder.storage import load_builder, save_builder

app = FastAPI(title="Store Builder")

_settings = load_settings()


def get_settings() -> Settings:
    return _settings


def get_backend(settings: Settings = Depends(get_settings)) -> StoreBackend:
    return StoreApiClient(settings)


def _load(session_id: str) -> StoreBuilder:
    try:
        return load_builder(session_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Session not found")


def _snapshot(builder: StoreBuilder) -> dict[str, Any]:
    s = builder.session
    spec = engine.get_spec(s.step)
    last = s.transcript.last_bot()

    snapshot: dict[str, Any] = {
        "session_id": s.session_id,
        "reply": last.text if last else "",
        "current_step": s.step.value,
        "modality": spec.modality.value,
        "widget": spec.widget.value if spec.widget else None,
        "options": spec.options,
        "placeholder": engine.placeholder_for(s.step, s.input_disabled),
        "multiline": spec.multiline,
        "messages": [
            {**m.model_dump(mode="json"), "active": builder.is_widget_active(m)} for m in s.transcript.messages
        ],
        "data": s.draft.model_dump(mode="json", by_alias=True, exclude_none=True),
        "location_form": s.location_form.model_dump(by_alias=True) if s.location_form else None,
        "hours_form": s.hours_form.model_dump(by_alias=True) if s.hours_form else None,
        "input_disabled": s.input_disabled,
        "is_typing": s.is_typing,
        "is_uploading": s.is_uploading,
        "is_creating": s.is_creating,
        "validation_error": s.validation_error,
        "completed": s.step is Step.COMPLETE,
        "store_id": s.store_id,
        "redirect_to": s.redirect_to,
    }
    if s.step in {Step.REVIEW, Step.COMPLETE}:
        preview = build_preview(s.draft, builder.settings.store_domain)
        snapshot["preview"] = preview.model_dump(exclude_none=True)
        snapshot["summary"] = "\n".join(summary_lines(preview))
    return snapshot


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/steps")
def steps() -> dict[str, Any]:
    return {
        "steps": [spec.model_dump(mode="json") for spec in engine.STEP_SPECS.values()],
        "transitions": {
            step.value: {kind.value: target.value for kind, target in successors.items()}
            for step, successors in engine.TRANSITIONS.items()
        },
    }


class StartRequest(BaseModel):
    store_type: Optional[StoreType] = None


@app.post("/start")
async def start(
    req: Optional[StartRequest] = None,
    settings: Settings = Depends(get_settings),
    backend: StoreBackend = Depends(get_backend),
) -> dict[str, Any]:
    builder = StoreBuilder(backend, settings, initial_store_type=req.store_type if req else None)
    save_builder(builder)
    await builder.start()
    return _snapshot(builder)


@app.get("/sessions/{session_id}")
def session(session_id: str) -> dict[str, Any]:
    return _snapshot(_load(session_id))


@app.get("/sessions/{session_id}/categories")
async def categories(session_id: str) -> dict[str, Any]:
    builder = _load(session_id)
    try:
        items = await builder.list_categories()
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"categories": [c.model_dump(by_alias=True) for c in items]}


@app.get("/sessions/{session_id}/themes")
async def themes(session_id: str) -> dict[str, Any]:
    builder = _load(session_id)
    try:
        items = await builder.list_themes()
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"themes": [t.model_dump(by_alias=True) for t in items]}


class ChatRequest(BaseModel):
    session_id: str
    action: Literal[
        "message",
        "select-type",
        "confirm-type",
        "change-type",
        "select-category",
        "customize-subdomain",
        "keep-subdomain",
        "skip-image",
        "location",
        "hours",
        "select-theme",
        "complete",
        "restart",
    ] = "message"
    message: str | None = None
    value: Any | None = None


async def _dispatch(builder: StoreBuilder, req: ChatRequest) -> None:
    action, value = req.action, req.value
    if action == "message":
        await builder.submit_text(req.message or "")
    elif action == "select-type":
        await builder.select_type(value)
    elif action == "confirm-type":
        await builder.confirm_type()
    elif action == "change-type":
        await builder.change_type()
    elif action == "select-category":
        await builder.select_category(value)
    elif action == "customize-subdomain":
        await builder.confirm_subdomain(True)
    elif action == "keep-subdomain":
        await builder.confirm_subdomain(False)
    elif action == "skip-image":
        await builder.skip_image()
    elif action == "location":
        form = LocationForm.model_validate(value or {})
        builder.update_location_form(**form.model_dump())
        await builder.submit_location()
    elif action == "hours":
        form = HoursForm.model_validate(value or {})
        builder.update_hours_form(**form.model_dump())
        await builder.submit_hours()
    elif action == "select-theme":
        await builder.select_theme(value)
    elif action == "complete":
        await builder.complete()
    elif action == "restart":
        await builder.restart()


@app.post("/chat")
async def chat(req: ChatRequest) -> dict[str, Any]:
    builder = _load(req.session_id)
    try:
        await _dispatch(builder, req)
    except (InactiveWidget, InvalidTransition) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _snapshot(builder)


@app.post("/upload")
async def upload(session_id: str = Form(...), file: UploadFile = File(...)) -> dict[str, Any]:
    builder = _load(session_id)
    image = ImageFile(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        data=await file.read(),
    )
    try:
        await builder.upload_image(image)
    except InactiveWidget as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _snapshot(builder)
