"""Core application components."""

# Import in correct order to avoid circular dependencies
from core.logger import setup_logger, get_logger
from core.constants import (
    Collections,
    DatabaseDefaults,
    PhoneRules,
    TaskName,
    ReferralDefaults,
    LotteryDefaults,
    SpinDefaults,
    CampaignDefaults,
    CacheDefaults,
    GreenApiDefaults,
)
from core.exceptions import (
    ApplicationError,
    ConfigurationError,
    DatabaseError,
    TransientStoreError,
    ServiceError,
    LotteryError,
    InsufficientParticipantsError,
    MessagingError,
    ValidationError,
    CampaignClosedError,
    NotFoundError,
    CampaignNotFoundError,
    ParticipantNotFoundError,
)

__all__ = [
    # Logging
    'setup_logger',
    'get_logger',
    # Constants
    'Collections',
    'DatabaseDefaults',
    'PhoneRules',
    'TaskName',
    'ReferralDefaults',
    'LotteryDefaults',
    'SpinDefaults',
    'CampaignDefaults',
    'CacheDefaults',
    'GreenApiDefaults',
    # Exceptions
    'ApplicationError',
    'ConfigurationError',
    'DatabaseError',
    'TransientStoreError',
    'ServiceError',
    'LotteryError',
    'InsufficientParticipantsError',
    'MessagingError',
    'ValidationError',
    'CampaignClosedError',
    'NotFoundError',
    'CampaignNotFoundError',
    'ParticipantNotFoundError',
]
