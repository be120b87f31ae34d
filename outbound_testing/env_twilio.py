"""
EnvTwilio – REST-backed queries against the live Twilio account.

The outbound helpers use this object to observe conference state and to flip
worker activities; they never create or destroy platform resources through it.
"""
from dataclasses import dataclass
from typing import Optional

from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client

from outbound_testing import env


class ConferenceNotFoundError(LookupError):
    """No conference exists with the requested friendly name."""


@dataclass(frozen=True)
class ParticipantProperties:
    call_sid: str
    hold: bool
    muted: bool
    status: Optional[str] = None


class EnvTwilio:
    """
    Query helper for conferences, participants and workers.

    Builds an async Twilio REST client from explicit credentials, falling back to
    TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN from the suite configuration.  A ready
    client may be injected instead (unit tests pass a mock).
    """

    def __init__(self, account_sid: Optional[str] = None, auth_token: Optional[str] = None,
                 client=None):
        if client is None:
            account_sid = account_sid or env.ACCOUNT_SID
            auth_token  = auth_token or env.AUTH_TOKEN
            if not account_sid or not auth_token:
                raise ValueError(
                    "Twilio credentials are not configured. "
                    "Set TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN."
                )
            client = Client(account_sid, auth_token, http_client=AsyncTwilioHttpClient())
        self.client = client

    async def close(self) -> None:
        http_client = getattr(self.client, 'http_client', None)
        if isinstance(http_client, AsyncTwilioHttpClient):
            await http_client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def fetch_conference_by_name(self, name: str):
        """Return the most recent conference whose friendly name is ``name`` (the task sid)."""
        conferences = await self.client.conferences.list_async(friendly_name=name, limit=1)
        if not conferences:
            raise ConferenceNotFoundError(f"No conference found with friendly name '{name}'")
        conference = conferences[0]
        print(f"   [REST] Conference {conference.sid} name={name} status={conference.status}", flush=True)
        return conference

    async def fetch_conference_participants(self, conference_sid: str) -> list:
        participants = await self.client.conferences(conference_sid).participants.list_async()
        print(f"   [REST] Conference {conference_sid} has {len(participants)} participant(s)", flush=True)
        return participants

    async def fetch_participant_properties(self, conference_sid: str) -> dict:
        """
        Map each participant's phone number to its ParticipantProperties.

        Participants only carry a call sid, so the call leg is fetched to find the
        number it was placed to.
        """
        properties = {}
        for participant in await self.fetch_conference_participants(conference_sid):
            call = await self.client.calls(participant.call_sid).fetch_async()
            properties[call.to] = ParticipantProperties(
                call_sid=participant.call_sid,
                hold=bool(participant.hold),
                muted=bool(participant.muted),
                status=participant.status,
            )
            print(f"   [REST]   {call.to}: hold={participant.hold} muted={participant.muted}", flush=True)
        return properties

    async def update_worker_activity(self, workspace_sid: str, worker_sid: str, activity_sid: str):
        worker = await self.client.taskrouter.v1.workspaces(workspace_sid) \
            .workers(worker_sid).update_async(activity_sid=activity_sid)
        print(f"   [REST] Worker {worker_sid} activity -> {activity_sid}", flush=True)
        return worker
