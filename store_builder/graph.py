from __future__ import annotations

from typing import Any, Optional

from langgraph.graph import END, StateGraph
from pydantic import BaseModel, Field

from store_builder import engine
from store_builder.engine import StepEvent, Transition
from store_builder.state import Locale, Step, StoreDraft


class Turn(BaseModel):
    """One user action flowing through validate -> apply -> advance."""

    step: Step
    event: StepEvent
    draft: StoreDraft = Field(default_factory=StoreDraft)
    locale: Locale = Field(default_factory=Locale)
    domain: str = "digemart.com"

    normalized: Any = None
    error: Optional[str] = None
    transition: Optional[Transition] = None


def validate(turn: Turn) -> dict[str, Any]:
    ok, normalized, error = engine.validate_input(turn.step, turn.event, turn.locale)
    if not ok:
        return {"error": error, "normalized": None}
    return {"error": None, "normalized": normalized}


def apply(turn: Turn) -> dict[str, Any]:
    draft = engine.apply_step_result(turn.draft, turn.step, turn.normalized, turn.event.kind)
    return {"draft": draft}


def advance(turn: Turn) -> dict[str, Any]:
    event = StepEvent(kind=turn.event.kind, value=turn.normalized)
    return {"transition": engine.next_step(turn.step, event, turn.draft, domain=turn.domain)}


def _route_after_validate(turn: Turn) -> str:
    return END if turn.error else "apply"


builder = StateGraph(Turn)
builder.add_node("validate", validate)
builder.add_node("apply", apply)
builder.add_node("advance", advance)

builder.set_entry_point("validate")
builder.add_conditional_edges("validate", _route_after_validate, {"apply": "apply", END: END})
builder.add_edge("apply", "advance")
builder.add_edge("advance", END)

turn_graph = builder.compile()


def run_turn(
    step: Step,
    event: StepEvent,
    draft: StoreDraft,
    *,
    locale: Locale | None = None,
    domain: str = "digemart.com",
) -> Turn:
    turn = Turn(step=step, event=event, draft=draft, locale=locale or Locale(), domain=domain)
    result = turn_graph.invoke(turn)
    if isinstance(result, Turn):
        return result
    return Turn.model_validate(result)
