from __future__ import annotations

import pytest

from store_builder import engine
from store_builder.engine import EventKind, InputModality, StepEvent
from store_builder.errors import InvalidTransition
from store_builder.graph import run_turn
from store_builder.state import (
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


def test_every_step_is_declared():
    for step in Step:
        assert engine.get_spec(step).step is step
        for kind in engine.TRANSITIONS[step]:
            assert (step, kind) in engine.PROMPTS


def test_complete_is_terminal():
    assert engine.TRANSITIONS[Step.COMPLETE] == {}
    with pytest.raises(InvalidTransition):
        engine.next_step(Step.COMPLETE, StepEvent.answer("x"))


def test_widget_matches_modality():
    for spec in engine.STEP_SPECS.values():
        if spec.modality in {InputModality.SELECTOR, InputModality.FORM}:
            assert spec.widget is not None
        else:
            assert spec.widget is None


@pytest.mark.parametrize(
    "step,event,target",
    [
        (Step.SELECT_TYPE, StepEvent.answer("EXTERNAL"), Step.STORE_CATEGORY),
        (Step.CONFIRM_TYPE, StepEvent.accept(), Step.STORE_CATEGORY),
        (Step.CONFIRM_TYPE, StepEvent.change(), Step.SELECT_TYPE),
        (Step.CONFIRM_SUBDOMAIN, StepEvent.accept(), Step.STORE_DESCRIPTION),
        (Step.CONFIRM_SUBDOMAIN, StepEvent.change(), Step.EDIT_SUBDOMAIN),
        (Step.EDIT_SUBDOMAIN, StepEvent.answer("x"), Step.STORE_DESCRIPTION),
        (Step.STORE_PHONE, StepEvent.answer("x"), Step.STORE_LOCATION),
        (Step.THEME_SELECTION, StepEvent.answer("x"), Step.REVIEW),
        (Step.REVIEW, StepEvent.answer(1), Step.COMPLETE),
    ],
)
def test_next_step(step, event, target):
    assert engine.next_step(step, event).step is target


@pytest.mark.parametrize("step", [Step.STORE_LOGO, Step.STORE_COVER, Step.STORE_HERO_IMAGE])
def test_skip_and_upload_share_successor(step):
    uploaded = engine.next_step(step, StepEvent.answer("https://cdn/x.png"))
    skipped = engine.next_step(step, StepEvent.skip())
    assert uploaded.step is skipped.step
    assert uploaded.prompt != skipped.prompt


def test_next_step_formats_prompt():
    draft = StoreDraft(store_name="Ada's Bakery", subdomain="adas-bakery")
    transition = engine.next_step(Step.STORE_NAME, StepEvent.answer("Ada's Bakery"), draft, domain="digemart.com")
    assert transition.step is Step.CONFIRM_SUBDOMAIN
    assert "adas-bakery.digemart.com" in transition.prompt
    assert transition.widget is Widget.SUBDOMAIN_CONFIRM

    typed = engine.next_step(Step.SELECT_TYPE, StepEvent.answer("INTERNAL"), StoreDraft(store_type=StoreType.INTERNAL))
    assert "Business Listing" in typed.prompt


def test_next_step_rejects_unknown_event():
    with pytest.raises(InvalidTransition):
        engine.next_step(Step.STORE_NAME, StepEvent.skip())
    with pytest.raises(InvalidTransition):
        engine.validate_input(Step.STORE_EMAIL, StepEvent.accept())


def test_initial_step_and_greeting():
    assert engine.initial_step(None) is Step.SELECT_TYPE
    assert engine.initial_step(StoreType.EXTERNAL) is Step.CONFIRM_TYPE
    assert "E-commerce Store" in engine.greeting(StoreType.EXTERNAL)
    assert engine.greeting(None) == engine.GREETING


def test_placeholder_for():
    assert engine.placeholder_for(Step.STORE_EMAIL, False) == "your@email.com"
    assert engine.placeholder_for(Step.STORE_LOGO, True) == "Please select an option above..."


@pytest.mark.parametrize(
    "step,raw,error",
    [
        (Step.STORE_NAME, "   ", "Please type a response first."),
        (Step.STORE_EMAIL, "not-an-email", "Please enter a valid email address"),
        (Step.STORE_PHONE, "123", "Please enter a valid phone number (e.g., 08012345678)"),
        (Step.EDIT_SUBDOMAIN, "!!!", "Subdomain must contain letters or numbers"),
        (Step.STORE_LOCATION, {"address": "1 Rd", "state": "", "city": "Ikeja"}, "Please fill in all location fields"),
        (Step.STORE_LOCATION, {"address": "1 Rd", "state": "Gotham", "city": "Ikeja"}, "Please select a valid state"),
    ],
)
def test_validate_input_errors(step, raw, error):
    ok, normalized, message = engine.validate_input(step, StepEvent.answer(raw))
    assert not ok
    assert normalized is None
    assert message == error


def test_validate_input_normalizes():
    assert engine.validate_input(Step.STORE_NAME, StepEvent.answer("  Ada  ")) == (True, "Ada", None)
    assert engine.validate_input(Step.STORE_PHONE, StepEvent.answer("08012345678"))[1] == "+2348012345678"
    assert engine.validate_input(Step.EDIT_SUBDOMAIN, StepEvent.answer("My Shop!"))[1] == "my-shop"

    ok, location, _ = engine.validate_input(
        Step.STORE_LOCATION, StepEvent.answer({"address": " 12 Broad St ", "state": "lagos", "city": "Ikeja"})
    )
    assert ok
    assert location == LocationForm(address="12 Broad St", state="Lagos", city="Ikeja")


def test_validate_location_without_state_list():
    locale = Locale(enforce_states=False)
    ok, location, _ = engine.validate_input(
        Step.STORE_LOCATION, StepEvent.answer({"address": "1 Main St", "state": "Ontario", "city": "Toronto"}), locale
    )
    assert ok
    assert location.state == "Ontario"


def test_validate_hours():
    ok, hours, _ = engine.validate_input(Step.STORE_HOURS, StepEvent.answer({}))
    assert ok
    assert hours == HoursForm()

    bad = {"openTime": "7am", "closeTime": "19:00", "weekOpen": "Monday", "weekClose": "Saturday"}
    assert engine.validate_input(Step.STORE_HOURS, StepEvent.answer(bad))[2] == "Please enter times as HH:MM"


def test_apply_step_result_is_pure():
    draft = StoreDraft()
    updated = engine.apply_step_result(draft, Step.STORE_NAME, "Ada's Bakery")
    assert draft.store_name is None
    assert updated.store_name == "Ada's Bakery"
    assert updated.subdomain == "adas-bakery"


def test_apply_step_result_fields():
    draft = StoreDraft(store_type=StoreType.EXTERNAL)
    assert engine.apply_step_result(draft, Step.CONFIRM_TYPE, None, EventKind.CHANGE).store_type is None
    assert engine.apply_step_result(draft, Step.CONFIRM_TYPE, None, EventKind.ACCEPT).store_type is StoreType.EXTERNAL
    assert engine.apply_step_result(draft, Step.STORE_CATEGORY, Category(id=3, name="Food")).store_category_id == 3
    assert engine.apply_step_result(draft, Step.STORE_LOGO, None, EventKind.SKIP).store_logo is None
    assert engine.apply_step_result(draft, Step.STORE_COVER, "https://cdn/c.png").store_cover_photo == "https://cdn/c.png"

    theme = ThemeTemplate(id=12, name="Bakery Warm")
    assert engine.apply_step_result(draft, Step.THEME_SELECTION, theme).selected_theme == ThemeRef(id=12)

    hours = HoursForm(open_time="07:00", close_time="19:00", week_open="Monday", week_close="Saturday")
    applied = engine.apply_step_result(draft, Step.STORE_HOURS, hours)
    assert (applied.store_time_open, applied.store_time_close) == ("07:00", "19:00")
    assert (applied.week_open, applied.week_close) == ("Monday", "Saturday")


def test_user_label():
    assert engine.user_label(Step.CONFIRM_TYPE, StepEvent.change()) == "Change type"
    assert engine.user_label(Step.CONFIRM_SUBDOMAIN, StepEvent.accept()) == "No, looks good"
    assert engine.user_label(Step.STORE_LOGO, StepEvent.answer("u")) == "✓ Logo uploaded"
    assert engine.user_label(Step.STORE_HERO_IMAGE, StepEvent.skip()) == "Skip hero"
    assert engine.user_label(Step.SELECT_TYPE, StepEvent.answer(StoreType.INTERNAL)) == "Business Listing"
    hours = HoursForm(open_time="07:00", close_time="19:00", week_open="Monday", week_close="Saturday")
    assert engine.user_label(Step.STORE_HOURS, StepEvent.answer(hours)) == "Monday - Saturday, 07:00 - 19:00"


def test_run_turn_applies_and_advances():
    turn = run_turn(Step.STORE_EMAIL, StepEvent.answer(" ada@example.com "), StoreDraft(store_name="Ada"))
    assert turn.error is None
    assert turn.draft.email == "ada@example.com"
    assert turn.draft.store_name == "Ada"
    assert turn.transition.step is Step.STORE_PHONE


def test_run_turn_stops_on_validation_error():
    draft = StoreDraft(store_name="Ada")
    turn = run_turn(Step.STORE_EMAIL, StepEvent.answer("nope"), draft)
    assert turn.error == "Please enter a valid email address"
    assert turn.transition is None
    assert turn.draft == draft
