# SPDX-License-Identifier: Apache-2.0
#
# Rate-limited reading advisories ("bubbles"). The policy decides when a
# bubble may appear and what it says; the renderer only draws and removes.

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Hashable, Iterable

from data_designer_credibility.highlight import Fragment
from data_designer_credibility.metrics import Metrics, compute_metrics
from data_designer_credibility.scoring import ScoreResult, WeightVector, score_ai

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BubbleConfig:
    """Timing and capacity limits. Durations are in milliseconds."""

    max_active: int = 2
    debounce_ms: float = 8000
    auto_dismiss_ms: float = 6000
    min_fragment_chars: int = 30


DEFAULT_BUBBLE_CONFIG = BubbleConfig()


class BubbleState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    COOLDOWN = "cooldown"


# ---------------------------------------------------------------------------
# Action table, in priority order
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BubbleAction:
    name: str
    message: str
    action_label: str
    applies: Callable[[Metrics], bool]


BUBBLE_ACTIONS: tuple[BubbleAction, ...] = (
    BubbleAction(
        "coverage",
        "Strong claim, no quotes. Want broader coverage?",
        "See other coverage",
        lambda m: m.opinion_marker_count > 0 and m.quote_count == 0,
    ),
    BubbleAction(
        "factchecks",
        "Repetition detected. Open opposing coverage?",
        "Find fact-checks",
        lambda m: m.trigram_repetition_rate > 0.3,
    ),
    BubbleAction(
        "source",
        "Who's the source? Check their About page.",
        "Check source",
        lambda m: True,
    ),
)


def choose_action(metrics: Metrics, actions: tuple[BubbleAction, ...] = BUBBLE_ACTIONS) -> BubbleAction:
    for action in actions:
        if action.applies(metrics):
            return action
    return actions[-1]


@dataclass(frozen=True)
class BubbleDecision:
    bubble_id: str
    handle: Hashable
    action: str
    message: str
    action_label: str
    score: ScoreResult
    metrics: Metrics
    emitted_at: float
    expires_at: float
    text: str = ""

    def to_payload(self) -> dict[str, object]:
        return {
            "bubble_id": self.bubble_id,
            "action": self.action,
            "message": self.message,
            "action_label": self.action_label,
            "score": self.score.to_payload(),
            "emitted_at": self.emitted_at,
            "expires_at": self.expires_at,
        }


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class BubblePolicy:
    """Decide when to show a reading advisory, and track the ones on screen.

    At most ``config.max_active`` bubbles are open at once, emissions are at
    least ``config.debounce_ms`` apart, and every bubble carries an
    auto-dismiss deadline in a timer table keyed by bubble id. Deadlines are
    processed by :meth:`expire` (also run on each visibility batch) and
    cancelled by :meth:`dismiss`, :meth:`forget`, and :meth:`reset`.

    Args:
        config: Timing and capacity limits.
        clock: Returns the current time in milliseconds.
        weights: Weight vector used to score advised fragments.
        metrics_fn: Metric extractor, injectable for tests.
        on_dismiss: Called with ``(bubble_id, reason)`` whenever a bubble closes.
    """

    def __init__(
        self,
        config: BubbleConfig | None = None,
        clock: Callable[[], float] = _monotonic_ms,
        weights: WeightVector | None = None,
        metrics_fn: Callable[[str], Metrics] = compute_metrics,
        on_dismiss: Callable[[str, str], None] | None = None,
    ) -> None:
        self.config = config or DEFAULT_BUBBLE_CONFIG
        self.weights = weights
        self._clock = clock
        self._metrics_fn = metrics_fn
        self._on_dismiss = on_dismiss
        self._ids = itertools.count(1)

        self.smart_bubbles = True
        self.quiet_mode = False

        self._active: dict[str, BubbleDecision] = {}
        self._timers: dict[str, float] = {}
        self._by_handle: dict[Hashable, str] = {}
        self._processed: set[Hashable] = set()
        self._last_emission: float | None = None

    # -- inspection ---------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self.smart_bubbles and not self.quiet_mode

    @property
    def active_bubble_ids(self) -> frozenset[str]:
        return frozenset(self._active)

    @property
    def pending_timers(self) -> dict[str, float]:
        return dict(self._timers)

    @property
    def last_emission(self) -> float | None:
        return self._last_emission

    def state(self, now: float | None = None) -> BubbleState:
        now = self._now(now)
        if not self.enabled:
            return BubbleState.IDLE
        if self._in_debounce(now) or self._open_at(now) >= self.config.max_active:
            return BubbleState.COOLDOWN
        return BubbleState.ARMED

    # -- events -------------------------------------------------------------

    def on_visible(self, fragments: Iterable[Fragment], now: float | None = None) -> BubbleDecision | None:
        """Handle a batch of fragments that just became visible.

        Returns the bubble to show, or ``None`` when the policy holds back.
        Only the first eligible fragment of a batch is acted on.
        """
        now = self._now(now)
        self.expire(now)

        if not self.enabled:
            logger.debug("Bubble suppressed: smart bubbles off or quiet mode on")
            return None
        if self._in_debounce(now):
            logger.debug("Bubble suppressed: debounce interval still running")
            return None
        if len(self._active) >= self.config.max_active:
            logger.debug(f"Bubble suppressed: {len(self._active)} bubbles already open")
            return None

        for fragment in fragments:
            if fragment.handle in self._processed:
                continue
            self._processed.add(fragment.handle)
            text = (fragment.text or "").strip()
            if len(text) < self.config.min_fragment_chars:
                continue
            return self._emit(fragment.handle, text, now)
        return None

    def dismiss(self, bubble_id: str, reason: str = "user") -> bool:
        """Close a bubble and cancel its timer. Unknown ids are a no-op."""
        decision = self._active.pop(bubble_id, None)
        self._timers.pop(bubble_id, None)
        if decision is None:
            return False
        if self._by_handle.get(decision.handle) == bubble_id:
            del self._by_handle[decision.handle]
        logger.debug(f"Bubble {bubble_id} dismissed ({reason})")
        if self._on_dismiss is not None:
            self._on_dismiss(bubble_id, reason)
        return True

    def expire(self, now: float | None = None) -> list[str]:
        """Auto-dismiss every bubble whose deadline has passed."""
        now = self._now(now)
        due = [bubble_id for bubble_id, deadline in self._timers.items() if deadline <= now]
        for bubble_id in due:
            self.dismiss(bubble_id, reason="timeout")
        return due

    def forget(self, handle: Hashable) -> bool:
        """The fragment left the page: drop its bubble and its processed mark."""
        self._processed.discard(handle)
        bubble_id = self._by_handle.get(handle)
        if bubble_id is None:
            return False
        return self.dismiss(bubble_id, reason="removed")

    def update_settings(self, smart_bubbles: bool, quiet_mode: bool) -> None:
        self.smart_bubbles = bool(smart_bubbles)
        self.quiet_mode = bool(quiet_mode)
        if not self.enabled:
            self._dismiss_all("disabled")

    def reset(self) -> None:
        """Start over for a new page view."""
        self._dismiss_all("navigation")
        self._processed.clear()
        self._last_emission = None

    # -- internals ----------------------------------------------------------

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _open_at(self, now: float) -> int:
        """Bubbles still on screen at ``now``, ignoring deadlines already due."""
        return sum(1 for deadline in self._timers.values() if deadline > now)

    def _in_debounce(self, now: float) -> bool:
        return self._last_emission is not None and now - self._last_emission < self.config.debounce_ms

    def _dismiss_all(self, reason: str) -> None:
        for bubble_id in list(self._active):
            self.dismiss(bubble_id, reason=reason)

    def _emit(self, handle: Hashable, text: str, now: float) -> BubbleDecision:
        metrics = self._metrics_fn(text)
        action = choose_action(metrics)
        decision = BubbleDecision(
            bubble_id=f"bubble-{next(self._ids)}",
            handle=handle,
            action=action.name,
            message=action.message,
            action_label=action.action_label,
            score=score_ai(metrics, self.weights),
            metrics=metrics,
            emitted_at=now,
            expires_at=now + self.config.auto_dismiss_ms,
            text=text,
        )
        self._active[decision.bubble_id] = decision
        self._timers[decision.bubble_id] = decision.expires_at
        self._by_handle[handle] = decision.bubble_id
        self._last_emission = now
        logger.debug(f"Bubble {decision.bubble_id} emitted with action {action.name!r}")
        return decision
