"""Campaign lottery: weighted draw, wheel plan and run history."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from prometheus_client import Counter, Histogram

from core import get_logger
from database.models import DrawRun, utcnow
from database.repositories import DrawRunRepository
from services.campaigns import CampaignService
from services.draw_engine import DrawResult, WeightedDrawEngine
from services.spin_wheel import SpinPlan, plan_spin
from services.ticket_ledger import TicketLedger
from utils.validators import require_winner_count

logger = get_logger(__name__)

DRAWS = Counter(
    "lottery_draws_total",
    "Draws executed",
    ["recorded"],
)
DRAW_POPULATION = Histogram(
    "lottery_draw_population_tickets",
    "Tickets in the weighted population per draw",
    buckets=(1, 10, 50, 100, 500, 1000, 5000, 10000),
)


@dataclass
class LotteryOutcome:
    campaign_id: str
    result: DrawResult
    spin: SpinPlan
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data["campaign_id"] = self.campaign_id
        data["spin"] = self.spin.to_dict()
        data["run_id"] = self.run_id
        return data


class LotteryService:
    """Runs draws for a campaign.

    The winners are fixed before the wheel plan is produced; the plan only
    animates toward the first winner's landing index.
    """

    def __init__(
        self,
        campaigns: CampaignService,
        ledger: TicketLedger,
        runs: DrawRunRepository,
        engine: Optional[WeightedDrawEngine] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.campaigns = campaigns
        self.ledger = ledger
        self.runs = runs
        self.rng = rng or random.SystemRandom()
        self.engine = engine or WeightedDrawEngine(rng=self.rng)

    async def run_draw(
        self,
        campaign_id: str,
        winner_count: int,
        weighted_additional_winners: Optional[bool] = None,
        record: bool = False,
        requested_by: Optional[str] = None,
    ) -> LotteryOutcome:
        """Draw winners from a campaign's current participants.

        Args:
            campaign_id: Full or shortened campaign id
            winner_count: Requested number of winners (>= 1)
            weighted_additional_winners: Weight positions after the first
                by tickets; engine default when None
            record: Persist the run under the campaign's draw history
            requested_by: Admin username stored with a recorded run

        Raises:
            CampaignNotFoundError: Unknown campaign
            ValidationError: winner_count < 1
            InsufficientParticipantsError: Campaign has no participants
        """
        winner_count = require_winner_count(winner_count)
        campaign = await self.campaigns.get_campaign(campaign_id)
        participants = await self.ledger.list_participants(campaign.id)

        result = self.engine.draw(participants, winner_count, weighted_additional_winners)
        spin = plan_spin(len(result.population), result.landing_index, rng=self.rng)
        DRAW_POPULATION.observe(len(result.population))

        run_id = None
        if record:
            run_id = await self.runs.save(
                DrawRun(
                    id="",
                    campaign_id=campaign.id,
                    executed_at=utcnow(),
                    winner_ids=result.winner_ids,
                    population_size=len(result.population),
                    landing_index=result.landing_index,
                    weighted_additional_winners=result.weighted_additional_winners,
                    requested_by=requested_by,
                )
            )
            logger.info(f"Recorded draw {run_id} for campaign {campaign.id}")

        DRAWS.labels(recorded=str(record).lower()).inc()
        logger.info(
            f"Campaign {campaign.id} draw: first winner {result.first_winner.participant_id} "
            f"at ticket {result.landing_index}/{len(result.population)}"
        )
        return LotteryOutcome(campaign_id=campaign.id, result=result, spin=spin, run_id=run_id)

    async def list_runs(self, campaign_id: str) -> List[DrawRun]:
        campaign = await self.campaigns.get_campaign(campaign_id)
        return await self.runs.list_by_campaign(campaign.id)
