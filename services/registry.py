"""Wiring of the service graph on top of a document store."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from core import get_logger
from core.exceptions import ConfigurationError
from database.document_store import DocumentStore
from database.repositories import CampaignRepository, DrawRunRepository, ParticipantRepository
from services.campaigns import CampaignService
from services.draw_engine import WeightedDrawEngine
from services.duplicate_guard import DuplicateRegistrationGuard
from services.lottery import LotteryService
from services.referral_resolver import ReferralResolver
from services.registration import RegistrationService
from services.ticket_ledger import TicketLedger
from services.whatsapp_gateway import GreenApiClient, WhatsAppGateway

logger = get_logger(__name__)


@dataclass
class LotteryServices:
    campaigns: CampaignService
    ledger: TicketLedger
    registration: RegistrationService
    lottery: LotteryService
    whatsapp: Optional[WhatsAppGateway] = None


def build_services(
    config,
    store: Optional[DocumentStore] = None,
    rng: Optional[random.Random] = None,
) -> LotteryServices:
    """Build every service from configuration.

    Args:
        config: Application configuration
        store: Document store; defaults to one over the global pool
        rng: Randomness source for draws; SystemRandom when None
    """
    store = store or DocumentStore()
    campaign_repo = CampaignRepository(store)
    participant_repo = ParticipantRepository(store)

    campaigns = CampaignService(campaign_repo, participant_repo, cache_ttl=config.campaign_cache_ttl)
    ledger = TicketLedger(participant_repo, campaign_repo)
    registration = RegistrationService(
        campaigns,
        DuplicateRegistrationGuard(participant_repo),
        ReferralResolver(participant_repo),
        ledger,
    )
    engine = WeightedDrawEngine(
        rng=rng,
        weighted_additional_winners=config.weighted_additional_winners,
    )
    lottery = LotteryService(campaigns, ledger, DrawRunRepository(store), engine=engine, rng=rng)

    whatsapp = None
    if config.whatsapp_configured:
        try:
            whatsapp = WhatsAppGateway(GreenApiClient.from_config(config), campaigns, config.public_base_url)
        except ConfigurationError as e:
            logger.warning(f"WhatsApp gateway disabled: {e}")
    else:
        logger.info("WhatsApp gateway not configured")

    return LotteryServices(
        campaigns=campaigns,
        ledger=ledger,
        registration=registration,
        lottery=lottery,
        whatsapp=whatsapp,
    )


_services: Optional[LotteryServices] = None


def init_services(config, store: Optional[DocumentStore] = None) -> LotteryServices:
    global _services
    _services = build_services(config, store)
    return _services


def get_services() -> LotteryServices:
    """Get the global service graph.

    Raises:
        RuntimeError: If services are not initialized
    """
    if _services is None:
        raise RuntimeError("Services are not initialized")
    return _services
