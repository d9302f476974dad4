"""
Pairwise Chemistry Module

Aggregates, for every pair of players on a roster, the ice time they share
and the shots generated and allowed with both on the ice versus apart, and
derives a composite 0-100 chemistry index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Sequence

from loguru import logger

from rink_analytics.analytics.geometry import is_high_danger_location
from rink_analytics.config import ChemistrySettings, RinkSettings
from rink_analytics.models.events import Game, Shift, Shot
from rink_analytics.timing import parse_clock

PairKey = tuple[int, int]

NEUTRAL_CHEMISTRY = 50.0


def pair_key(player_a: int, player_b: int) -> PairKey:
    """Canonical (low, high) key for an unordered pair."""
    return (player_a, player_b) if player_a < player_b else (player_b, player_a)


class ChemistryRating(str, Enum):
    """Ordinal chemistry tiers."""

    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"
    POOR = "poor"

    @classmethod
    def from_index(cls, value: float) -> "ChemistryRating":
        if value >= 75:
            return cls.EXCELLENT
        if value >= 60:
            return cls.GOOD
        if value >= 45:
            return cls.AVERAGE
        if value >= 30:
            return cls.BELOW_AVERAGE
        return cls.POOR


@dataclass(frozen=True)
class TogetherStats:
    """Shot results with both players on the ice."""

    shots: int = 0
    goals: int = 0
    high_danger_shots: int = 0
    shots_against: int = 0
    goals_against: int = 0


@dataclass(frozen=True)
class ApartStats:
    """Team shots with one player on the ice and the other off."""

    shots: int = 0
    goals: int = 0


@dataclass(frozen=True)
class PairChemistry:
    """Chemistry record for one player pair (player1_id < player2_id)."""

    player1_id: int
    player2_id: int
    games_analyzed: int
    toi_together: int  # Seconds
    shifts_overlapping: int
    together: TogetherStats
    player1_apart: ApartStats
    player2_apart: ApartStats
    shot_support_rate: float
    offensive_score: float
    defensive_score: float
    chemistry_index: int

    @property
    def key(self) -> PairKey:
        return (self.player1_id, self.player2_id)


@dataclass(frozen=True)
class ChemistryMatrix:
    """Read-only chemistry records for a team's roster."""

    team_id: int
    games_analyzed: int
    player_ids: tuple[int, ...]
    pairs: Mapping[PairKey, PairChemistry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pairs", MappingProxyType(dict(self.pairs)))

    def get(self, player_a: int, player_b: int) -> PairChemistry | None:
        """Look up a pair in either order."""
        return self.pairs.get(pair_key(player_a, player_b))

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass(frozen=True)
class LineChemistry:
    """Chemistry assessment of a multi-player grouping."""

    line_type: str
    player_ids: tuple[int, ...]
    avg_pair_chemistry: int
    toi_together: int
    shots_for: int
    shots_against: int
    rating: ChemistryRating

    @property
    def shot_differential(self) -> int:
        return self.shots_for - self.shots_against


@dataclass(frozen=True)
class ChemistryExtremes:
    """Best and worst pairs by chemistry index."""

    best_pairs: tuple[PairChemistry, ...]
    worst_pairs: tuple[PairChemistry, ...]


@dataclass(frozen=True)
class LineSuggestions:
    """Greedy line and pair suggestions."""

    forward_lines: tuple[LineChemistry, ...]
    defense_pairs: tuple[LineChemistry, ...]


@dataclass
class _PairAccumulator:
    toi_together: int = 0
    shifts_overlapping: int = 0
    shots: int = 0
    goals: int = 0
    high_danger_shots: int = 0
    shots_against: int = 0
    goals_against: int = 0
    player1_shots: int = 0
    player1_goals: int = 0
    player2_shots: int = 0
    player2_goals: int = 0


class ChemistryAnalyzer:
    """
    Build and query pairwise chemistry.

    Inputs:
        - Games with shift charts; shots may carry embedded on-ice sets.
    Outputs:
        - ChemistryMatrix of PairChemistry records
        - Line evaluations, extremes, and greedy line suggestions
    """

    def __init__(
        self,
        settings: ChemistrySettings | None = None,
        rink: RinkSettings | None = None,
    ) -> None:
        self.settings = settings or ChemistrySettings()
        self.rink = rink or RinkSettings()

    # ------------------------------------------------------------------
    # Matrix construction
    # ------------------------------------------------------------------

    def build_matrix(
        self,
        games: Sequence[Game],
        team_id: int,
        player_ids: Iterable[int],
        on_yield: Callable[[], None] | None = None,
    ) -> ChemistryMatrix:
        """
        Aggregate pair chemistry over a batch of games in a single pass.

        Games without shift data are skipped. Results do not depend on
        whether on_yield is given.

        Args:
            games: Games to analyze
            team_id: Team whose roster is analyzed
            player_ids: Roster players to pair up
            on_yield: Optional callback invoked between games every N games

        Returns:
            ChemistryMatrix with pairs that meet the overlapping-shift minimum
        """
        roster = frozenset(player_ids)
        accumulators: dict[PairKey, _PairAccumulator] = {}
        yield_every = self.settings.yield_every_games
        skipped_games = 0

        for index, game in enumerate(games):
            if on_yield is not None and index > 0 and index % yield_every == 0:
                on_yield()

            if not game.has_shifts:
                skipped_games += 1
                continue

            self._process_game(game, team_id, roster, accumulators)

        if skipped_games:
            logger.warning(f"Skipped {skipped_games} games without shift data for team {team_id}")

        pairs = {}
        for key, acc in accumulators.items():
            if acc.shifts_overlapping < self.settings.min_shifts_together:
                continue
            pairs[key] = self._finalize(key, acc, len(games))

        logger.info(
            f"Built chemistry matrix for team {team_id}: "
            f"{len(pairs)} pairs from {len(games) - skipped_games} games"
        )

        return ChemistryMatrix(
            team_id=team_id,
            games_analyzed=len(games),
            player_ids=tuple(sorted(roster)),
            pairs=dict(sorted(pairs.items())),
        )

    def _process_game(
        self,
        game: Game,
        team_id: int,
        roster: frozenset[int],
        accumulators: dict[PairKey, _PairAccumulator],
    ) -> None:
        player_shifts: dict[int, list[Shift]] = {}
        for shift in game.shifts:
            if shift.team_id == team_id and shift.player_id in roster:
                player_shifts.setdefault(shift.player_id, []).append(shift)

        active_players = sorted(player_shifts)
        min_overlap = self.settings.min_overlap_seconds

        for player_a, player_b in combinations(active_players, 2):
            acc = accumulators.setdefault((player_a, player_b), _PairAccumulator())
            for shift_a in player_shifts[player_a]:
                for shift_b in player_shifts[player_b]:
                    overlap = shift_a.overlap(shift_b)
                    if overlap >= min_overlap:
                        acc.toi_together += overlap
                        acc.shifts_overlapping += 1

        for shot in game.shots:
            if shot.team_id is None:
                continue

            on_ice = self._our_players_on_ice(shot, team_id, roster, player_shifts)
            if not on_ice:
                continue

            is_ours = shot.team_id == team_id
            high_danger = shot.has_location and is_high_danger_location(
                shot.x_coord,
                shot.y_coord,
                self.rink.goal_line_x,
                max_distance=self.rink.high_danger_distance,
                max_lateral=self.rink.high_danger_lateral,
            )

            for player_a, player_b in combinations(on_ice, 2):
                acc = accumulators.setdefault((player_a, player_b), _PairAccumulator())
                if is_ours:
                    acc.shots += 1
                    acc.goals += int(shot.is_goal)
                    acc.high_danger_shots += int(high_danger)
                else:
                    acc.shots_against += 1
                    acc.goals_against += int(shot.is_goal)

            if not is_ours:
                continue

            # Team shot while an active roster player sat on the bench
            on_ice_set = set(on_ice)
            for off_ice in active_players:
                if off_ice in on_ice_set:
                    continue
                for on_ice_player in on_ice:
                    key = pair_key(off_ice, on_ice_player)
                    acc = accumulators.setdefault(key, _PairAccumulator())
                    if on_ice_player == key[0]:
                        acc.player1_shots += 1
                        acc.player1_goals += int(shot.is_goal)
                    else:
                        acc.player2_shots += 1
                        acc.player2_goals += int(shot.is_goal)

    def _our_players_on_ice(
        self,
        shot: Shot,
        team_id: int,
        roster: frozenset[int],
        player_shifts: Mapping[int, list[Shift]],
    ) -> list[int]:
        """Roster players on ice for a shot: embedded set first, shift lookup otherwise."""
        embedded = shot.on_ice_for(team_id)
        if embedded:
            return sorted(p for p in embedded if p in roster)

        shot_seconds = parse_clock(shot.clock)
        return sorted(
            player_id
            for player_id, shifts in player_shifts.items()
            if any(shift.contains(shot.period, shot_seconds) for shift in shifts)
        )

    def _finalize(self, key: PairKey, acc: _PairAccumulator, games_analyzed: int) -> PairChemistry:
        settings = self.settings

        apart_shots = acc.player1_shots + acc.player2_shots
        total_shots = acc.shots + apart_shots
        support_rate = acc.shots / total_shots * 100 if total_shots > 0 else NEUTRAL_CHEMISTRY

        minutes_together = acc.toi_together / 60
        if minutes_together > 0:
            shots_per_minute = acc.shots / minutes_together
            against_per_minute = acc.shots_against / minutes_together
        else:
            shots_per_minute = 0.0
            against_per_minute = 0.0

        offensive = min(100.0, shots_per_minute * settings.offensive_scale)
        defensive = max(0.0, 100.0 - against_per_minute * settings.defensive_penalty)

        index = round(
            offensive * settings.offensive_weight
            + min(100.0, support_rate) * settings.support_weight
            + defensive * settings.defensive_weight
        )

        return PairChemistry(
            player1_id=key[0],
            player2_id=key[1],
            games_analyzed=games_analyzed,
            toi_together=acc.toi_together,
            shifts_overlapping=acc.shifts_overlapping,
            together=TogetherStats(
                shots=acc.shots,
                goals=acc.goals,
                high_danger_shots=acc.high_danger_shots,
                shots_against=acc.shots_against,
                goals_against=acc.goals_against,
            ),
            player1_apart=ApartStats(shots=acc.player1_shots, goals=acc.player1_goals),
            player2_apart=ApartStats(shots=acc.player2_shots, goals=acc.player2_goals),
            shot_support_rate=support_rate,
            offensive_score=offensive,
            defensive_score=defensive,
            chemistry_index=min(100, max(0, int(index))),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def evaluate_line(
        self,
        matrix: ChemistryMatrix,
        player_ids: Sequence[int],
        line_type: str = "forward",
    ) -> LineChemistry:
        """
        Average the chemistry of every pair in a grouping.

        Pairs absent from the matrix are ignored; a grouping with no known
        pairs rates as neutral (50).
        """
        pairs = [
            chemistry
            for a, b in combinations(player_ids, 2)
            if (chemistry := matrix.get(a, b)) is not None
        ]

        if pairs:
            average = sum(p.chemistry_index for p in pairs) / len(pairs)
        else:
            average = NEUTRAL_CHEMISTRY

        return LineChemistry(
            line_type=line_type,
            player_ids=tuple(player_ids),
            avg_pair_chemistry=round(average),
            toi_together=sum(p.toi_together for p in pairs),
            shots_for=sum(p.together.shots for p in pairs),
            shots_against=sum(p.together.shots_against for p in pairs),
            rating=ChemistryRating.from_index(average),
        )

    def chemistry_extremes(self, matrix: ChemistryMatrix, top_n: int = 5) -> ChemistryExtremes:
        """Best and worst pairs among those with enough overlapping shifts."""
        eligible = [
            pair
            for pair in matrix.pairs.values()
            if pair.shifts_overlapping >= self.settings.extremes_min_shifts
        ]
        best = sorted(eligible, key=lambda p: (-p.chemistry_index, p.key))
        worst = sorted(eligible, key=lambda p: (p.chemistry_index, p.key))
        return ChemistryExtremes(best_pairs=tuple(best[:top_n]), worst_pairs=tuple(worst[:top_n]))

    def _best_pair(self, matrix: ChemistryMatrix, available: list[int]) -> PairKey | None:
        best = None
        best_index = -1
        # Lexicographic scan with strict comparison keeps the lowest-ID pair on ties
        for a, b in combinations(available, 2):
            chemistry = matrix.get(a, b)
            if chemistry is not None and chemistry.chemistry_index > best_index:
                best_index = chemistry.chemistry_index
                best = (a, b)
        return best

    def suggest_lines(
        self,
        matrix: ChemistryMatrix,
        forward_ids: Iterable[int],
        defense_ids: Iterable[int],
        max_forward_lines: int = 4,
        max_defense_pairs: int = 3,
    ) -> LineSuggestions:
        """
        Greedily build forward trios and defense pairs.

        Each trio starts from the best available pair; the third forward is
        the one with the highest average chemistry to both (unknown pairs
        count as 50). Ties go to the lowest player IDs.
        """
        forwards = sorted(set(forward_ids))
        used: set[int] = set()
        forward_lines = []

        while len(forward_lines) < max_forward_lines:
            available = [p for p in forwards if p not in used]
            if len(available) < 3:
                break

            best = self._best_pair(matrix, available)
            if best is None:
                break

            third = None
            third_score = -1.0
            for candidate in available:
                if candidate in best:
                    continue
                scores = []
                for member in best:
                    chemistry = matrix.get(member, candidate)
                    scores.append(
                        chemistry.chemistry_index if chemistry is not None else NEUTRAL_CHEMISTRY
                    )
                score = sum(scores) / len(scores)
                if score > third_score:
                    third_score = score
                    third = candidate

            line = (best[0], best[1], third)
            used.update(line)
            forward_lines.append(self.evaluate_line(matrix, line, "forward"))

        defense = sorted(set(defense_ids))
        used_defense: set[int] = set()
        defense_pairs = []

        while len(defense_pairs) < max_defense_pairs:
            available = [p for p in defense if p not in used_defense]
            if len(available) < 2:
                break

            best = self._best_pair(matrix, available)
            if best is None:
                break

            used_defense.update(best)
            defense_pairs.append(self.evaluate_line(matrix, best, "defense"))

        return LineSuggestions(forward_lines=tuple(forward_lines), defense_pairs=tuple(defense_pairs))
