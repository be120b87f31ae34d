from outbound_testing.env_twilio import ConferenceNotFoundError, EnvTwilio, ParticipantProperties
from outbound_testing.outbound_common_helpers import (
    TRANSFER_MODE_COLD,
    TRANSFER_MODE_WARM,
    OutboundCommonHelpers,
    OutboundTestError,
)
from outbound_testing.voice_base import expect_event, pause_test_execution

__all__ = [
    'ConferenceNotFoundError',
    'EnvTwilio',
    'OutboundCommonHelpers',
    'OutboundTestError',
    'ParticipantProperties',
    'TRANSFER_MODE_COLD',
    'TRANSFER_MODE_WARM',
    'expect_event',
    'pause_test_execution',
]
