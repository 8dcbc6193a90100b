from __future__ import annotations

from store_builder.orchestrator import StoreBuilder

_builders: dict[str, StoreBuilder] = {}


def save_builder(builder: StoreBuilder) -> None:
    _builders[builder.session.session_id] = builder


def load_builder(session_id: str) -> StoreBuilder:
    builder = _builders.get(session_id)
    if builder is None:
        raise ValueError("Session not found")
    return builder


def clear_builders() -> None:
    _builders.clear()
