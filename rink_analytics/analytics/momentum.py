"""
Rolling Momentum Engine

Samples team shot pressure over a trailing time window and detects
momentum swings, sustained momentum intervals, and period-level flow.

Momentum at a sample is (home shots - away shots) / max(total shots, floor),
so it is always within [-1, 1]: positive favors the home team, negative the
away team, and zero means no shot pressure in the window.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
from loguru import logger

from rink_analytics.analytics.expected_goals import ExpectedGoalsModel
from rink_analytics.config import MomentumSettings, RinkSettings
from rink_analytics.models.events import Event, EventKind, Shot
from rink_analytics.timing import period_of, to_elapsed_seconds


class MomentumEventKind(str, Enum):
    """Event kinds that feed the momentum engine."""

    SHOT = "shot"
    GOAL = "goal"
    HIT = "hit"
    TAKEAWAY = "takeaway"
    GIVEAWAY = "giveaway"


MOMENTUM_KINDS = {
    EventKind.GOAL: MomentumEventKind.GOAL,
    EventKind.SHOT: MomentumEventKind.SHOT,
    EventKind.MISSED_SHOT: MomentumEventKind.SHOT,
    EventKind.BLOCKED_SHOT: MomentumEventKind.SHOT,
    EventKind.HIT: MomentumEventKind.HIT,
    EventKind.TAKEAWAY: MomentumEventKind.TAKEAWAY,
    EventKind.GIVEAWAY: MomentumEventKind.GIVEAWAY,
}

SWING_TRIGGER = "Shot Surge"


@dataclass(frozen=True)
class MomentumEvent:
    """A normalized event on the game's elapsed-time axis."""

    event_id: int
    period: int
    elapsed_seconds: int
    team_id: int
    kind: MomentumEventKind
    xg: float | None = None

    @property
    def is_shot(self) -> bool:
        """Shots and goals both count as shot pressure."""
        return self.kind in (MomentumEventKind.SHOT, MomentumEventKind.GOAL)


@dataclass(frozen=True)
class MomentumSample:
    """Shot pressure in the trailing window ending at `time`."""

    time: int
    home_shots: int
    away_shots: int
    momentum: float


@dataclass(frozen=True)
class MomentumSwing:
    """Lead change in momentum between two consecutive samples."""

    time: int
    period: int
    trigger: str
    from_team: int
    to_team: int


@dataclass(frozen=True)
class MomentumInterval:
    """A sustained run of strong momentum for one team."""

    start_time: int
    end_time: int
    team_id: int
    intensity: float  # Peak |momentum| within the run
    shot_count: int = 0

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class PeriodMomentum:
    """Per-period flow summary from the home team's perspective."""

    period: int
    dominant_team: int | None  # None when the shot differential is even
    shot_differential: int
    high_danger_differential: int


@dataclass(frozen=True)
class MomentumAnalytics:
    """Full momentum breakdown for a game."""

    samples: tuple[MomentumSample, ...]
    swings: tuple[MomentumSwing, ...]
    intervals: tuple[MomentumInterval, ...]
    periods: tuple[PeriodMomentum, ...]


class MomentumEngine:
    """
    Momentum engine over a single game's events.

    Every operation sorts its input by elapsed time, so callers may pass
    events in any order.
    """

    def __init__(
        self,
        settings: MomentumSettings | None = None,
        xg_model: ExpectedGoalsModel | None = None,
        rink: RinkSettings | None = None,
    ) -> None:
        self.settings = settings or MomentumSettings()
        self.rink = rink or RinkSettings()
        self.xg_model = xg_model or ExpectedGoalsModel(goal_line_x=self.rink.goal_line_x)

    def prepare_events(self, events: Iterable[Event | MomentumEvent]) -> list[MomentumEvent]:
        """
        Normalize raw events into sorted momentum events.

        Events without an owning team and kinds that carry no momentum are
        skipped. Raises ParseError if an event's clock is malformed.
        """
        prepared = []
        skipped = 0

        for event in events:
            if isinstance(event, MomentumEvent):
                prepared.append(event)
                continue

            kind = MOMENTUM_KINDS.get(event.kind)
            if kind is None:
                continue
            if event.team_id is None:
                skipped += 1
                continue

            xg = None
            if isinstance(event, Shot):
                prediction = self.xg_model.score_shot(event)
                if prediction is not None:
                    xg = prediction.probability

            prepared.append(
                MomentumEvent(
                    event_id=event.event_id,
                    period=event.period,
                    elapsed_seconds=to_elapsed_seconds(
                        event.period, event.clock, self.rink.period_length_seconds
                    ),
                    team_id=event.team_id,
                    kind=kind,
                    xg=xg,
                )
            )

        if skipped:
            logger.debug(f"Skipped {skipped} momentum events without a team")

        return self._sorted(prepared)

    @staticmethod
    def _sorted(events: Iterable[MomentumEvent]) -> list[MomentumEvent]:
        return sorted(events, key=lambda e: (e.elapsed_seconds, e.event_id))

    def _shot_times(self, events: Sequence[MomentumEvent], team_id: int) -> np.ndarray:
        return np.array(
            [e.elapsed_seconds for e in events if e.team_id == team_id and e.is_shot],
            dtype=np.int64,
        )

    def rolling_samples(
        self,
        events: Sequence[MomentumEvent],
        home_team_id: int,
        away_team_id: int,
    ) -> list[MomentumSample]:
        """
        Sample momentum at fixed intervals over a trailing window.

        Samples run from 0 to max(last event time, one regulation game).
        Each sample counts shots in (t - window, t].
        """
        events = self._sorted(events)
        if not events:
            return []

        window = self.settings.window_seconds
        floor = self.settings.denominator_floor
        regulation_end = self.rink.period_length_seconds * self.rink.regulation_periods
        max_time = max(events[-1].elapsed_seconds, regulation_end)

        times = np.arange(0, max_time + 1, self.settings.sample_interval_seconds)
        home_times = self._shot_times(events, home_team_id)
        away_times = self._shot_times(events, away_team_id)

        home_counts = np.searchsorted(home_times, times, side="right") - np.searchsorted(
            home_times, times - window, side="right"
        )
        away_counts = np.searchsorted(away_times, times, side="right") - np.searchsorted(
            away_times, times - window, side="right"
        )

        samples = []
        for time, home, away in zip(times.tolist(), home_counts.tolist(), away_counts.tolist()):
            total = home + away
            momentum = (home - away) / max(total, floor) if total > 0 else 0.0
            samples.append(
                MomentumSample(time=time, home_shots=home, away_shots=away, momentum=momentum)
            )

        return samples

    def detect_swings(
        self,
        samples: Sequence[MomentumSample],
        home_team_id: int,
        away_team_id: int,
    ) -> list[MomentumSwing]:
        """
        Detect lead changes between consecutive samples.

        A swing needs both a change larger than the swing threshold and a
        strict sign flip; a sample at exactly zero never takes part in one.
        """
        swings = []
        threshold = self.settings.swing_threshold

        for prev, curr in zip(samples, samples[1:]):
            if abs(curr.momentum - prev.momentum) <= threshold:
                continue
            if prev.momentum * curr.momentum >= 0:
                continue

            swings.append(
                MomentumSwing(
                    time=curr.time,
                    period=period_of(curr.time, self.rink.period_length_seconds),
                    trigger=SWING_TRIGGER,
                    from_team=home_team_id if prev.momentum > 0 else away_team_id,
                    to_team=home_team_id if curr.momentum > 0 else away_team_id,
                )
            )

        return swings

    def sustained_intervals(
        self,
        samples: Sequence[MomentumSample],
        events: Sequence[MomentumEvent],
        home_team_id: int,
        away_team_id: int,
    ) -> list[MomentumInterval]:
        """
        Merge strong-momentum samples into sustained intervals.

        A qualifying sample extends the open interval when the same team
        leads and it is no more than the max gap after the interval end;
        otherwise it opens a new interval.
        """
        threshold = self.settings.sustained_threshold
        max_gap = self.settings.sustained_max_gap_seconds

        runs: list[list] = []  # [start, end, team, peak]
        for sample in samples:
            intensity = abs(sample.momentum)
            if intensity <= threshold:
                continue

            team_id = home_team_id if sample.momentum > 0 else away_team_id
            current = runs[-1] if runs else None
            if current is None or current[2] != team_id or sample.time - current[1] > max_gap:
                runs.append([sample.time, sample.time, team_id, intensity])
            else:
                current[1] = sample.time
                current[3] = max(current[3], intensity)

        window = self.settings.window_seconds
        intervals = []
        for start, end, team_id, peak in runs:
            shot_count = sum(
                1
                for e in events
                if e.team_id == team_id and e.is_shot and start - window < e.elapsed_seconds <= end
            )
            intervals.append(
                MomentumInterval(
                    start_time=start,
                    end_time=end,
                    team_id=team_id,
                    intensity=peak,
                    shot_count=shot_count,
                )
            )

        return intervals

    def period_summary(
        self,
        events: Sequence[MomentumEvent],
        home_team_id: int,
        away_team_id: int,
    ) -> list[PeriodMomentum]:
        """
        Summarize shot and high-danger differentials for each regulation period.

        Differentials are home minus away. High danger means xG at or above
        the configured threshold.
        """
        if not events:
            return []

        hd_threshold = self.settings.high_danger_xg
        summary = []

        for period in range(1, self.rink.regulation_periods + 1):
            shots = [e for e in events if e.period == period and e.is_shot]
            home_shots = sum(1 for e in shots if e.team_id == home_team_id)
            away_shots = sum(1 for e in shots if e.team_id == away_team_id)
            home_hd = sum(
                1 for e in shots if e.team_id == home_team_id and (e.xg or 0.0) >= hd_threshold
            )
            away_hd = sum(
                1 for e in shots if e.team_id == away_team_id and (e.xg or 0.0) >= hd_threshold
            )

            shot_diff = home_shots - away_shots
            if shot_diff > 0:
                dominant = home_team_id
            elif shot_diff < 0:
                dominant = away_team_id
            else:
                dominant = None

            summary.append(
                PeriodMomentum(
                    period=period,
                    dominant_team=dominant,
                    shot_differential=shot_diff,
                    high_danger_differential=home_hd - away_hd,
                )
            )

        return summary

    def analyze(
        self,
        events: Iterable[Event | MomentumEvent],
        home_team_id: int,
        away_team_id: int,
    ) -> MomentumAnalytics:
        """
        Run the full momentum analysis for one game.

        Args:
            events: Raw or pre-normalized events, in any order
            home_team_id: Home team ID (positive momentum)
            away_team_id: Away team ID (negative momentum)

        Returns:
            MomentumAnalytics; all collections are empty for an empty input
        """
        prepared = self.prepare_events(events)
        samples = self.rolling_samples(prepared, home_team_id, away_team_id)
        swings = self.detect_swings(samples, home_team_id, away_team_id)
        intervals = self.sustained_intervals(samples, prepared, home_team_id, away_team_id)
        periods = self.period_summary(prepared, home_team_id, away_team_id)

        logger.debug(
            f"Momentum: {len(samples)} samples, {len(swings)} swings, "
            f"{len(intervals)} sustained intervals"
        )

        return MomentumAnalytics(
            samples=tuple(samples),
            swings=tuple(swings),
            intervals=tuple(intervals),
            periods=tuple(periods),
        )
