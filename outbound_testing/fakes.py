"""
In-memory stand-ins for the worker SDK objects and the EnvTwilio query helper.

They reproduce only what the outbound helpers observe: ``on(event, handler)``
subscriptions, the instructions the helpers issue, and the conference view
returned by the REST queries.
"""
import asyncio
from collections import defaultdict
from types import SimpleNamespace

from outbound_testing.env_twilio import ConferenceNotFoundError, ParticipantProperties


class FakeEmitter:
    def __init__(self):
        self.handlers = defaultdict(list)
        self._queued  = defaultdict(list)

    def on(self, event, handler):
        self.handlers[event].append(handler)
        loop = asyncio.get_running_loop()
        for args in self._queued.pop(event, []):
            loop.call_soon(handler, *args)

    def remove_listener(self, event, handler):
        if handler in self.handlers[event]:
            self.handlers[event].remove(handler)

    def fire_on_subscribe(self, event, *args):
        """Deliver ``event`` as soon as something subscribes to it."""
        self._queued[event].append(args)

    def emit(self, event, *args):
        for handler in list(self.handlers[event]):
            handler(*args)


class FakeTransfer(FakeEmitter):
    """An outgoing transfer that reports ``failed`` once someone listens for it."""

    def __init__(self, sid='TT001', status='initiated', fails=True, failed_status='failed'):
        super().__init__()
        self.sid    = sid
        self.status = status
        self.fails  = fails
        self.failed_status = failed_status

    def on(self, event, handler):
        super().on(event, handler)
        if event == 'failed' and self.fails:
            asyncio.get_running_loop().call_soon(self._fail)

    def _fail(self):
        self.status = self.failed_status
        self.emit('failed', self)


class FakeTask(FakeEmitter):
    def __init__(self, sid, status='reserved', routing_target=None, attributes=None):
        super().__init__()
        self.sid            = sid
        self.status         = status
        self.routing_target = routing_target
        self.attributes     = attributes or {}
        self.transfers      = []
        self.participant_updates = []
        self.next_transfer  = FakeTransfer()

    async def transfer(self, worker_sid, mode=None):
        self.transfers.append((worker_sid, mode))
        self.emit('transferInitiated', self.next_transfer)
        return self.next_transfer

    async def update_participant(self, **options):
        self.participant_updates.append(options)


class FakeReservation(FakeEmitter):
    def __init__(self, sid, task, worker_sid, status='pending', completes_task=False):
        super().__init__()
        self.sid            = sid
        self.task           = task
        self.worker_sid     = worker_sid
        self.status         = status
        self.completes_task = completes_task
        self.conference_error = None
        self.conferenced    = False

    async def conference(self):
        if self.conference_error is not None:
            raise self.conference_error
        self.conferenced = True
        self.status = 'accepted'
        return self

    async def complete(self):
        self.status = 'completed'
        if self.completes_task:
            self.task.status = 'completed'
        self.emit('completed', self)
        return self


class FakeWorker(FakeEmitter):
    """
    A worker that announces ``ready`` on subscription and reserves every task it
    creates for itself.
    """

    def __init__(self, sid='WK_ALICE', ready=True):
        super().__init__()
        self.sid          = sid
        self.reservations = {}
        self.created      = []
        self.task_overrides        = {}
        self.reservation_overrides = {}
        if ready:
            self.fire_on_subscribe('ready', self)

    async def create_task(self, to, from_, workflow_sid, queue_sid):
        task_sid = f'WT{len(self.created) + 1:03d}'
        self.created.append((to, from_, workflow_sid, queue_sid))
        task = FakeTask(
            task_sid,
            routing_target=self.sid,
            attributes={'from': from_, 'outbound_to': to},
        )
        for name, value in self.task_overrides.items():
            setattr(task, name, value)
        reservation = FakeReservation(f'WR{len(self.created):03d}', task, self.sid)
        for name, value in self.reservation_overrides.items():
            setattr(reservation, name, value)
        self.emit('reservationCreated', reservation)
        return task_sid


class FakeEnvTwilio:
    """Conference view keyed by task sid, with per-number hold flags."""

    def __init__(self):
        self.conferences = {}
        self.activity_updates = []

    def add_conference(self, task_sid, status='in-progress', participants=None, sid=None):
        conference = SimpleNamespace(
            sid=sid or f'CF{len(self.conferences) + 1:03d}',
            friendly_name=task_sid,
            status=status,
            participants=dict(participants or {}),
        )
        self.conferences[task_sid] = conference
        return conference

    def _by_sid(self, conference_sid):
        for conference in self.conferences.values():
            if conference.sid == conference_sid:
                return conference
        raise ConferenceNotFoundError(conference_sid)

    async def fetch_conference_by_name(self, name):
        if name not in self.conferences:
            raise ConferenceNotFoundError(f"No conference found with friendly name '{name}'")
        return self.conferences[name]

    async def fetch_conference_participants(self, conference_sid):
        conference = self._by_sid(conference_sid)
        return [
            SimpleNamespace(call_sid=f'CA{number}', hold=hold, muted=False, status='connected')
            for number, hold in conference.participants.items()
        ]

    async def fetch_participant_properties(self, conference_sid):
        conference = self._by_sid(conference_sid)
        return {
            number: ParticipantProperties(call_sid=f'CA{number}', hold=hold, muted=False, status='connected')
            for number, hold in conference.participants.items()
        }

    async def update_worker_activity(self, workspace_sid, worker_sid, activity_sid):
        self.activity_updates.append((workspace_sid, worker_sid, activity_sid))
        return SimpleNamespace(sid=worker_sid, activity_sid=activity_sid)
