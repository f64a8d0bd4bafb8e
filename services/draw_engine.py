"""Weighted winner selection.

The first ("grand prize") winner is drawn with probability proportional to
ticket count. Additional winners are drawn uniformly from the remaining
distinct participants unless ``weighted_additional_winners`` is enabled, in
which case they are drawn by tickets as well.

The outcome is computed up front and exposed together with the weighted
population and the first winner's landing index, so a wheel animation can
be driven to a result that is already fixed.
"""

from __future__ import annotations

import bisect
import random
from dataclasses import dataclass, field
from itertools import accumulate
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core import get_logger, LotteryDefaults
from core.exceptions import InsufficientParticipantsError
from database.models import Participant
from utils.validators import require_winner_count

logger = get_logger(__name__)


@dataclass(slots=True)
class Winner:
    position: int
    participant_id: str
    full_name: str
    phone: str
    tickets: int
    weighted: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "participant_id": self.participant_id,
            "full_name": self.full_name,
            "phone": self.phone,
            "tickets": self.tickets,
            "weighted": self.weighted,
        }


@dataclass(slots=True)
class DrawStep:
    """One random selection, recorded for auditing."""
    position: int
    pool_size: int
    index: int
    participant_id: str
    weighted: bool


@dataclass
class DrawResult:
    winners: List[Winner]
    population: List[str]
    landing_index: int
    steps: List[DrawStep] = field(default_factory=list)
    weighted_additional_winners: bool = False

    @property
    def first_winner(self) -> Winner:
        return self.winners[0]

    @property
    def winner_ids(self) -> List[str]:
        return [w.participant_id for w in self.winners]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winners": [w.to_dict() for w in self.winners],
            "population_size": len(self.population),
            "landing_index": self.landing_index,
            "weighted_additional_winners": self.weighted_additional_winners,
            "steps": [
                {
                    "position": s.position,
                    "pool_size": s.pool_size,
                    "index": s.index,
                    "participant_id": s.participant_id,
                    "weighted": s.weighted,
                }
                for s in self.steps
            ],
        }


def build_population(participants: Sequence[Participant]) -> List[str]:
    """Weighted multiset: each id repeated ``max(tickets, 1)`` times, contiguously."""
    population: List[str] = []
    for participant in participants:
        population.extend([participant.id] * participant.weight)
    return population


class WeightedDrawEngine:
    """Draws distinct winners from a campaign's participants."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        weighted_additional_winners: bool = LotteryDefaults.WEIGHTED_ADDITIONAL_WINNERS,
    ) -> None:
        self.rng = rng or random.SystemRandom()
        self.weighted_additional_winners = weighted_additional_winners

    def draw(
        self,
        participants: Sequence[Participant],
        winner_count: int,
        weighted_additional_winners: Optional[bool] = None,
    ) -> DrawResult:
        """Select up to ``winner_count`` distinct winners.

        Args:
            participants: Candidates with their ticket counts
            winner_count: Requested winners; capped at the number of
                distinct participants
            weighted_additional_winners: Overrides the engine default for
                positions after the first

        Returns:
            DrawResult with winners in draw order

        Raises:
            ValidationError: If winner_count < 1
            InsufficientParticipantsError: If there are no participants
        """
        winner_count = require_winner_count(winner_count)
        if len(participants) < LotteryDefaults.MIN_PARTICIPANTS:
            raise InsufficientParticipantsError("Cannot draw from an empty participant list")

        weighted_rest = (
            self.weighted_additional_winners
            if weighted_additional_winners is None
            else weighted_additional_winners
        )
        candidates = _distinct(participants)
        population = build_population(candidates)

        landing_index, first = self._weighted_pick(candidates)
        winners = [_winner(1, first, weighted=True)]
        steps = [DrawStep(1, len(population), landing_index, first.id, True)]

        remaining = [p for p in candidates if p.id != first.id]
        extra = min(winner_count - 1, len(remaining))
        if extra:
            if weighted_rest:
                picks = self._weighted_picks(remaining, extra)
            else:
                picks = self._uniform_picks(remaining, extra)
            for offset, (index, pool_size, participant) in enumerate(picks):
                position = offset + 2
                winners.append(_winner(position, participant, weighted=weighted_rest))
                steps.append(DrawStep(position, pool_size, index, participant.id, weighted_rest))

        logger.info(
            f"Drew {len(winners)} of {winner_count} requested winners from "
            f"{len(candidates)} participants / {len(population)} tickets"
        )
        return DrawResult(
            winners=winners,
            population=population,
            landing_index=landing_index,
            steps=steps,
            weighted_additional_winners=weighted_rest,
        )

    def _weighted_pick(self, candidates: Sequence[Participant]) -> Tuple[int, Participant]:
        """Pick by tickets without materializing the multiset.

        Returns the ticket index (the position in ``build_population``) and
        the participant owning it.
        """
        bounds = list(accumulate(p.weight for p in candidates))
        ticket = self.rng.randrange(bounds[-1])
        return ticket, candidates[bisect.bisect_right(bounds, ticket)]

    def _weighted_picks(self, pool: List[Participant], count: int) -> List[Tuple[int, int, Participant]]:
        pool = list(pool)
        picks = []
        for _ in range(count):
            pool_size = sum(p.weight for p in pool)
            index, participant = self._weighted_pick(pool)
            picks.append((index, pool_size, participant))
            pool.remove(participant)
        return picks

    def _uniform_picks(self, pool: List[Participant], count: int) -> List[Tuple[int, int, Participant]]:
        order = list(range(len(pool)))
        self.rng.shuffle(order)
        return [(index, len(pool), pool[index]) for index in order[:count]]


def _distinct(participants: Sequence[Participant]) -> List[Participant]:
    seen = set()
    unique = []
    for participant in participants:
        if participant.id in seen:
            continue
        seen.add(participant.id)
        unique.append(participant)
    return unique


def _winner(position: int, participant: Participant, weighted: bool) -> Winner:
    return Winner(
        position=position,
        participant_id=participant.id,
        full_name=participant.full_name,
        phone=participant.phone,
        tickets=participant.weight,
        weighted=weighted,
    )
