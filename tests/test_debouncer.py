"""Sticky window behaviour and the end-to-end routing scenarios."""

import pytest

from mediakeyrouter.engine.debouncer import DispatchDebouncer
from mediakeyrouter.engine.resolver import ResolverPolicy, Rule
from mediakeyrouter.engine.sources import FocusSignal, MediaKey, Source


@pytest.fixture
def debouncer(store):
    return DispatchDebouncer(store, ResolverPolicy(), sticky_window=1.0)


def test_no_history_delegates_to_resolver(debouncer, store, clock):
    store.update(Source.SPOTIFY, True, True)
    result = debouncer.resolve(clock(), MediaKey.NEXT, FocusSignal.NEITHER)
    assert result.target is Source.SPOTIFY
    assert result.rule is Rule.EXCLUSIVE


def test_sticks_to_last_target_despite_newer_observation(debouncer, store, clock):
    t0 = clock()
    store.update(Source.SPOTIFY, True, True, observed_at=t0)
    store.record_dispatch(Source.SPOTIFY, t0)

    store.update(Source.YOUTUBE, True, True, observed_at=t0 + 0.4)
    store.update(Source.SPOTIFY, True, False, observed_at=t0 + 0.4)

    result = debouncer.resolve(t0 + 0.5, MediaKey.NEXT, FocusSignal.BROWSER)
    assert result.target is Source.SPOTIFY
    assert result.rule is Rule.STICKY


def test_window_closes_after_sticky_window(debouncer, store, clock):
    t0 = clock()
    store.update(Source.SPOTIFY, True, False, observed_at=t0)
    store.record_dispatch(Source.SPOTIFY, t0)
    store.update(Source.YOUTUBE, True, True, observed_at=t0 + 0.9)

    result = debouncer.resolve(t0 + 1.0, MediaKey.NEXT, FocusSignal.NEITHER)
    assert result.target is Source.YOUTUBE
    assert result.rule is Rule.EXCLUSIVE


def test_unavailable_last_target_is_not_sticky(debouncer, store, clock):
    t0 = clock()
    store.record_dispatch(Source.BANDCAMP, t0)
    store.update(Source.BANDCAMP, False, False, observed_at=t0 + 0.1)
    store.update(Source.SPOTIFY, True, False, observed_at=t0 + 0.1)

    result = debouncer.resolve(t0 + 0.2, MediaKey.PLAY_PAUSE, FocusSignal.NEITHER)
    assert result.target is Source.SPOTIFY
    assert result.rule is Rule.FALLBACK


def test_scenario_focus_rule(debouncer, store, clock):
    store.update(Source.SPOTIFY, available=True, playing=False)
    result = debouncer.resolve(clock(), MediaKey.PLAY_PAUSE, FocusSignal.NATIVE_APP)
    assert result.target is Source.SPOTIFY
    assert result.rule is Rule.FOCUS


def test_scenario_contention_focus(debouncer, store, clock):
    store.update(Source.SPOTIFY, True, True)
    store.update(Source.YOUTUBE, True, True)
    result = debouncer.resolve(clock(), MediaKey.PLAY_PAUSE, FocusSignal.BROWSER)
    assert result.target is Source.YOUTUBE
    assert result.rule is Rule.CONTENTION_FOCUS


def test_scenario_unavailable_fallback(store, clock):
    debouncer = DispatchDebouncer(store, ResolverPolicy(fallback=Source.BANDCAMP))
    result = debouncer.resolve(clock(), MediaKey.PLAY_PAUSE, FocusSignal.NEITHER)
    assert result.target is None
    assert result.rule is Rule.NONE


def test_scenario_burst_of_next_presses(debouncer, store, clock):
    store.update(Source.BANDCAMP, True, True)
    first = debouncer.resolve(clock(), MediaKey.NEXT, FocusSignal.NEITHER)
    assert first.target is Source.BANDCAMP
    store.record_dispatch(first.target, clock())

    clock.advance(0.2)
    store.update(Source.SPOTIFY, True, True)
    second = debouncer.resolve(clock(), MediaKey.NEXT, FocusSignal.NEITHER)
    assert second.target is Source.BANDCAMP
    assert second.rule is Rule.STICKY
    assert second.reason != first.reason


def test_late_success_from_previous_target_keeps_sticky_target(debouncer, store, clock):
    t0 = clock()
    store.update(Source.SPOTIFY, True, True, observed_at=t0)
    store.update(Source.YOUTUBE, True, True, observed_at=t0)
    store.record_dispatch(Source.SPOTIFY, t0)
    store.record_dispatch(Source.YOUTUBE, t0 + 1.5)
    store.confirm_success(Source.SPOTIFY, t0 + 1.6)

    result = debouncer.resolve(t0 + 1.8, MediaKey.NEXT, FocusSignal.NEITHER)
    assert result.target is Source.YOUTUBE
    assert result.rule is Rule.STICKY
