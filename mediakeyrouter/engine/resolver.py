# mediakeyrouter/engine/resolver.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from .observations import DispatchHistory, Observation
from .sources import FocusSignal, MediaKey, Source, sources_owned_by


class Rule(Enum):
    STICKY = "sticky"
    EXCLUSIVE = "exclusive"
    CONTENTION_FOCUS = "contention-focus"
    CONTENTION_RECENT = "contention-recent"
    CONTENTION_ORDER = "contention-order"
    FOCUS = "focus"
    RECENT = "recent"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class Resolution:
    target: Source | None
    rule: Rule
    reason: str


def complete_order(order: Sequence[Source]) -> tuple[Source, ...]:
    """Makes a tie-break order total by appending missing sources in declaration order."""
    seen: list[Source] = []
    for source in list(order) + list(Source):
        if source not in seen:
            seen.append(source)
    return tuple(seen)


@dataclass(frozen=True)
class ResolverPolicy:
    tie_break: tuple[Source, ...] = field(default_factory=lambda: tuple(Source))
    fallback: Source = Source.SPOTIFY

    def __post_init__(self):
        object.__setattr__(self, "tie_break", complete_order(self.tie_break))

    def first_in_order(self, candidates: set[Source]) -> Source:
        return next(source for source in self.tie_break if source in candidates)


def _settle(candidates: set[Source], history: DispatchHistory, policy: ResolverPolicy) -> tuple[Source, bool]:
    """Picks among several equally qualified sources. Returns (source, chosen_by_recency)."""
    if history.last_target in candidates:
        return history.last_target, True
    return policy.first_in_order(candidates), False


def resolve(snapshot: Mapping[Source, Observation], focus: FocusSignal, history: DispatchHistory,
            key: MediaKey, policy: ResolverPolicy = ResolverPolicy()) -> Resolution:
    """Chooses the source a media key press should control.

    Pure function of its inputs. Rules are evaluated in priority order and the
    first one that matches wins:

    1. exactly one source playing
    2. several playing: the focused application's source, then the last
       target, then the static tie-break order
    3. nothing playing: the focused application's source if available
    4. the last target if available
    5. the fallback source if available
    6. no target

    The key does not influence the choice; it is accepted so callers can log
    one complete decision record.
    """
    playing = {source for source, obs in snapshot.items() if obs.playing}
    available = {source for source, obs in snapshot.items() if obs.available}
    focused = set(sources_owned_by(focus))
    last = history.last_target

    if len(playing) == 1:
        target = next(iter(playing))
        return Resolution(target, Rule.EXCLUSIVE, f"{target.value} is the only source playing")

    if playing:
        focused_playing = playing & focused
        if focused_playing:
            target, by_recency = _settle(focused_playing, history, policy)
            detail = "last used" if by_recency else "first in tie-break order"
            if len(focused_playing) == 1:
                detail = "only playing source"
            return Resolution(target, Rule.CONTENTION_FOCUS,
                              f"Multiple playing, {focus.value} frontmost, {target.value} is {detail} there")
        if last in playing:
            return Resolution(last, Rule.CONTENTION_RECENT, f"Multiple playing, using last active: {last.value}")
        target = policy.first_in_order(playing)
        return Resolution(target, Rule.CONTENTION_ORDER,
                          f"Multiple playing, defaulting to {target.value} by tie-break order")

    focused_available = available & focused
    if focused_available:
        target, by_recency = _settle(focused_available, history, policy)
        if len(focused_available) == 1:
            detail = "frontmost"
        elif by_recency:
            detail = "frontmost and last used"
        else:
            detail = "frontmost, first in tie-break order"
        return Resolution(target, Rule.FOCUS, f"Nothing playing, {target.value} is {detail}")

    if last is not None and last in available:
        return Resolution(last, Rule.RECENT, f"Nothing playing, last active: {last.value}")

    if policy.fallback in available:
        return Resolution(policy.fallback, Rule.FALLBACK, f"Fallback to {policy.fallback.value}")

    return Resolution(None, Rule.NONE, "No targets available")
