"""Services package."""

from .async_runner import set_main_loop, run_coroutine_sync
from .campaigns import CampaignService, CampaignStats
from .draw_engine import DrawResult, WeightedDrawEngine, Winner, build_population
from .duplicate_guard import DuplicateRegistrationGuard
from .lottery import LotteryOutcome, LotteryService
from .referral_resolver import ReferralResolver
from .registration import RegistrationContext, RegistrationRequest, RegistrationService
from .registry import LotteryServices, build_services, get_services, init_services
from .spin_wheel import SpinPlan, landing_index_for_rotation, plan_spin
from .ticket_ledger import NewParticipant, TicketLedger
from .whatsapp_gateway import GreenApiClient, WhatsAppGateway, parse_start_message

__all__ = [
    "set_main_loop",
    "run_coroutine_sync",
    "CampaignService",
    "CampaignStats",
    "DrawResult",
    "WeightedDrawEngine",
    "Winner",
    "build_population",
    "DuplicateRegistrationGuard",
    "LotteryOutcome",
    "LotteryService",
    "ReferralResolver",
    "RegistrationContext",
    "RegistrationRequest",
    "RegistrationService",
    "LotteryServices",
    "build_services",
    "get_services",
    "init_services",
    "SpinPlan",
    "landing_index_for_rotation",
    "plan_spin",
    "NewParticipant",
    "TicketLedger",
    "GreenApiClient",
    "WhatsAppGateway",
    "parse_start_message",
]
