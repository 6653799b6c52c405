import pytest

from conftest import FakeMonitor, FakeSink, FakeSwitch
from mediakeyrouter.engine.debouncer import DispatchDebouncer
from mediakeyrouter.engine.dispatcher import CommandDispatcher
from mediakeyrouter.engine.poller import ObservationPoller
from mediakeyrouter.engine.resolver import ResolverPolicy, Rule
from mediakeyrouter.engine.sources import Command, FocusSignal, MediaKey, Source
from mediakeyrouter.engine.state import EngineState, safe_focus
from mediakeyrouter.keycodes import NX_KEYTYPE_FAST, NX_KEYTYPE_NEXT, NX_KEYTYPE_PLAY, NX_KEYTYPE_REWIND

BRIGHTNESS_UP = 2


@pytest.fixture
def sinks():
    return {source: FakeSink(name=source.value) for source in Source}


@pytest.fixture
def engine(store, clock, sinks):
    focus = {"value": FocusSignal.NEITHER}
    state = EngineState(
        store=store,
        debouncer=DispatchDebouncer(store, ResolverPolicy()),
        dispatcher=CommandDispatcher(store, sinks, clock=clock),
        focus_query=lambda: focus["value"],
        switch=FakeSwitch(),
        clock=clock,
    )
    state.focus = focus
    yield state
    state.stop()


def test_non_media_keys_pass_through(engine):
    assert engine.handle_key_event(BRIGHTNESS_UP, True) is False


def test_disabled_switch_passes_everything_through(store, clock, sinks):
    store.update(Source.SPOTIFY, True, True)
    state = EngineState(store, DispatchDebouncer(store, ResolverPolicy()), CommandDispatcher(store, sinks, clock=clock),
                        focus_query=lambda: FocusSignal.NEITHER, switch=FakeSwitch(enabled=False), clock=clock)
    assert state.handle_key_event(NX_KEYTYPE_PLAY, True) is False
    assert store.history().last_target is None


def test_key_up_is_consumed_without_action(engine, store):
    assert engine.handle_key_event(NX_KEYTYPE_PLAY, False) is True
    assert store.history().last_target is None


def test_key_down_routes_and_dispatches(engine, store, sinks):
    store.update(Source.SPOTIFY, True, True)
    engine.start()
    assert engine.handle_key_event(NX_KEYTYPE_NEXT, True) is True
    engine.stop()
    assert sinks[Source.SPOTIFY].sent == [Command.SKIP_FORWARD]


def test_fast_forward_and_rewind_map_to_next_and_previous(engine, store, sinks):
    store.update(Source.BANDCAMP, True, True)
    engine.start()
    engine.handle_key_event(NX_KEYTYPE_FAST, True)
    engine.handle_key_event(NX_KEYTYPE_REWIND, True)
    engine.stop()
    assert sinks[Source.BANDCAMP].sent == [Command.SKIP_FORWARD, Command.SKIP_BACKWARD]


def test_no_target_is_consumed_silently(engine, store, sinks):
    assert engine.handle_key_event(NX_KEYTYPE_PLAY, True) is True
    assert store.history().last_target is None
    assert all(not sink.sent for sink in sinks.values())


def test_route_reports_rule(engine, store, clock):
    store.update(Source.YOUTUBE, True, False)
    store.update(Source.SPOTIFY, True, False)
    engine.focus["value"] = FocusSignal.BROWSER
    first = engine.route(MediaKey.NEXT)
    assert (first.target, first.rule) == (Source.YOUTUBE, Rule.FOCUS)
    clock.advance(0.2)
    engine.focus["value"] = FocusSignal.NATIVE_APP
    second = engine.route(MediaKey.NEXT)
    assert (second.target, second.rule) == (Source.YOUTUBE, Rule.STICKY)


def test_focus_failure_counts_as_neither(engine, store):
    def broken():
        raise OSError("workspace unavailable")

    assert safe_focus(broken) is FocusSignal.NEITHER
    store.update(Source.YOUTUBE, True, False)
    engine._focus_query = broken
    assert engine.route(MediaKey.PLAY_PAUSE).target is None


def test_routing_errors_never_escape(engine, monkeypatch):
    def explode(*_args):
        raise RuntimeError("boom")

    monkeypatch.setattr(engine.debouncer, "resolve", explode)
    assert engine.handle_key_event(NX_KEYTYPE_PLAY, True) is True


def test_start_polls_before_first_key(store, clock, sinks):
    poller = ObservationPoller(store, {Source.SPOTIFY: FakeMonitor(state=(True, True))}, interval=60)
    state = EngineState(store, DispatchDebouncer(store, ResolverPolicy()), CommandDispatcher(store, sinks, clock=clock),
                        focus_query=lambda: FocusSignal.NEITHER, switch=FakeSwitch(), poller=poller, clock=clock)
    state.start()
    try:
        assert state.route(MediaKey.PLAY_PAUSE).target is Source.SPOTIFY
    finally:
        state.stop()
