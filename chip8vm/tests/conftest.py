"""Shared pytest fixtures for the CHIP-8 tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from chip8vm.tracing import trace_dispatcher


@pytest.fixture(autouse=True)
def _isolated_trace_observers() -> Iterator[None]:
    # Observers registered by one test must not see another test's events.
    saved = tuple(trace_dispatcher.observers())
    yield
    for observer in tuple(trace_dispatcher.observers()):
        if observer not in saved:
            trace_dispatcher.unregister(observer)
