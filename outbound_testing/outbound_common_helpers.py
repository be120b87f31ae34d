"""
Common helpers for the outbound conference / transfer integration tests.

Each helper drives one stage of the flow against the live platform:
worker SDK objects (Worker, Reservation, Task, Transfer) provide the events and
instructions, EnvTwilio provides the REST view of the resulting conference.
Every check fails with an AssertionError; failures inside an event-driven stage
are re-raised as OutboundTestError naming the stage.
"""
import asyncio

from outbound_testing import env
from outbound_testing.voice_base import expect_event, pause_test_execution

TRANSFER_MODE_COLD = 'COLD'
TRANSFER_MODE_WARM = 'WARM'

_ENV_QUERY_METHODS = (
    'fetch_conference_by_name',
    'fetch_conference_participants',
    'fetch_participant_properties',
    'update_worker_activity',
)


class OutboundTestError(AssertionError):
    """A stage of the outbound flow did not reach the expected state."""

    @property
    def stage(self) -> str:
        """The failing check or stage, without the wrapped cause or the observed values."""
        return str(self).split(". Error:")[0].split(":")[0]


def _check(condition, message: str) -> None:
    # explicit raise so checks survive python -O
    if not condition:
        raise OutboundTestError(message)


def _participant_hold(participant_properties: dict, number: str) -> bool:
    participant = participant_properties.get(number)
    _check(participant is not None, (
        f"No conference participant for {number}; "
        f"participants: {sorted(participant_properties)}"
    ))
    return participant.hold


class OutboundCommonHelpers:
    """
    Utility class for the outbound conference/transfer flow.

    ``env_twilio`` is the REST query helper (see EnvTwilio).  ``credentials``
    defaults to the suite configuration module and ``status_check_delay`` is the
    pause, in milliseconds, before conference state is re-queried.
    """

    def __init__(self, env_twilio, credentials=None, status_check_delay: int = None):
        if env_twilio is None or not all(hasattr(env_twilio, m) for m in _ENV_QUERY_METHODS):
            raise TypeError(
                'Failed to instantiate OutboundCommonHelpers. '
                '<EnvTwilio>env_twilio is a required parameter.'
            )
        self.env_twilio         = env_twilio
        self.credentials        = credentials if credentials is not None else env
        self.status_check_delay = (
            status_check_delay if status_check_delay is not None else env.STATUS_CHECK_DELAY_MS
        )

    async def set_up_outbound_conference(self, worker):
        """
        Initial setup for an outbound conference test:
          1) wait for the worker to be ready with no pending reservations
          2) create a task and wait for its reservation
          3) assert reservation/task properties
          4) issue the conference instruction on the reservation

        Returns the reservation created for ``worker``.
        """
        creds = self.credentials

        ready   = expect_event(worker, 'ready')
        errored = expect_event(worker, 'error')
        await asyncio.wait({ready, errored}, return_when=asyncio.FIRST_COMPLETED)
        if not ready.done():
            ready.cancel()
            raise OutboundTestError(f"Error detected for Worker {worker.sid}. Error: {errored.result()}.")
        errored.cancel()

        pending = len(worker.reservations)
        _check(pending == 0, f"Worker should initialize with 0 pending Reservations, found {pending}")
        print(f"\n[SETUP] Worker {worker.sid} ready with 0 pending reservations", flush=True)

        # Armed before the task exists so the reservation cannot slip past us
        reservation_created = expect_event(worker, 'reservationCreated')
        task_sid = await worker.create_task(
            creds.CUSTOMER_NUMBER,
            creds.FLEX_CC_NUMBER,
            creds.MULTI_TASK_WORKFLOW_SID,
            creds.MULTI_TASK_QUEUE_SID,
        )
        print(f"[SETUP] Created task {task_sid}", flush=True)

        reservation = await reservation_created
        task        = reservation.task
        attributes  = task.attributes or {}

        # the reservation must be for the task we created ourselves
        _check(task.sid == task_sid, f"Created Task Sid for the Worker: expected {task_sid}, got {task.sid}")
        _check(task.status == 'reserved', f"Task status: expected 'reserved', got {task.status!r}")
        _check(task.routing_target == worker.sid, (
            f"Routing target: expected {worker.sid}, got {task.routing_target}"
        ))
        _check(attributes.get('from') == creds.FLEX_CC_NUMBER, (
            f"Conference From number: expected {creds.FLEX_CC_NUMBER}, got {attributes.get('from')}"
        ))
        _check(attributes.get('outbound_to') == creds.CUSTOMER_NUMBER, (
            f"Conference To number: expected {creds.CUSTOMER_NUMBER}, got {attributes.get('outbound_to')}"
        ))
        _check(reservation.status == 'pending', (
            f"Reservation Status: expected 'pending', got {reservation.status!r}"
        ))
        _check(reservation.worker_sid == worker.sid, (
            f"Worker Sid in conference: expected {worker.sid}, got {reservation.worker_sid}"
        ))
        print(f"   > PASS: Reservation {reservation.sid} matches task {task_sid}", flush=True)

        try:
            await reservation.conference()
        except Exception as err:
            raise OutboundTestError(f"Error while establishing conference. Error: {err}") from err
        print(f"[CONF] Conference instruction issued for reservation {reservation.sid}", flush=True)
        return reservation

    async def validate_transfer_initiated(self, transferor_reservation, transfer_initiated=None):
        """
        Assert properties after a transfer has been initiated.

        ``transfer_initiated`` may be a future already armed with expect_event on the
        task; otherwise the helper subscribes now.  Returns the outgoing Transfer once
        it has also reported ``failed``.
        """
        task = transferor_reservation.task
        if transfer_initiated is None:
            transfer_initiated = expect_event(task, 'transferInitiated')

        outgoing_transfer = await transfer_initiated
        transfer_failed   = expect_event(outgoing_transfer, 'failed')

        try:
            _check(outgoing_transfer.status == 'initiated', (
                f"Outgoing Transfer Status: expected 'initiated', got {outgoing_transfer.status!r}"
            ))
            print(f"\n[TRANSFER] Transfer initiated for task {task.sid}", flush=True)

            await pause_test_execution(self.status_check_delay)

            conference = await self.env_twilio.fetch_conference_by_name(task.sid)
            participant_properties = await self.env_twilio.fetch_participant_properties(conference.sid)
            hold = _participant_hold(participant_properties, self.credentials.CUSTOMER_NUMBER)
            _check(hold is True, f"Customer put on-hold value: expected True, got {hold!r}")
        except Exception as err:
            transfer_failed.cancel()
            raise OutboundTestError(
                f"Failed to validate transfer initiated properties. Error: {err}"
            ) from err
        print("   > PASS: Customer is on hold during transfer", flush=True)

        failed_transfer = await transfer_failed
        _check(failed_transfer.status == 'failed', (
            f"Outgoing Transfer Status: expected 'failed', got {failed_transfer.status!r}"
        ))
        print("   > PASS: Outgoing transfer reported failed", flush=True)
        return outgoing_transfer

    async def assert_on_transferor_accepted_and_initiate_transfer(
        self,
        transferor_reservation,
        make_transferee_available: bool,
        transferee_sid: str,
        transfer_mode: str,
        expected_conf_status: str = None,
        expected_conf_participants_size: int = None,
    ) -> None:
        """
        1) Assert conference properties after the transferor accepted
        2) Make the transferee available if requested
        3) Initiate the transfer (COLD or WARM)
        4) Validate the transfer-initiated properties
        """
        creds = self.credentials
        task  = transferor_reservation.task

        await self.verify_conference_properties(
            task.sid, expected_conf_status, expected_conf_participants_size
        )

        if make_transferee_available:
            await self.env_twilio.update_worker_activity(
                creds.MULTI_TASK_WORKSPACE_SID, transferee_sid, creds.MULTI_TASK_CONNECT_ACTIVITY_SID
            )

        transfer_initiated = expect_event(task, 'transferInitiated')
        print(f"[TRANSFER] {transfer_mode} transfer of task {task.sid} to {creds.MULTI_TASK_BOB_SID}", flush=True)
        await task.transfer(creds.MULTI_TASK_BOB_SID, mode=transfer_mode)

        await self.validate_transfer_initiated(transferor_reservation, transfer_initiated)

    async def assert_on_transferee_accepted(
        self,
        transferee_reservation,
        transferee_number: str,
        expected_conf_status: str = None,
        expected_conf_participant_size: int = None,
    ) -> None:
        """
        1) Assert conference properties after the transferee accepted
        2) Verify the customer is still on hold
        3) Un-hold the customer to bring them back into the conference
        4) Verify no participant is on hold
        """
        customer_number = self.credentials.CUSTOMER_NUMBER
        task = transferee_reservation.task

        await self.verify_conference_properties(
            task.sid, expected_conf_status, expected_conf_participant_size
        )

        conference = await self.env_twilio.fetch_conference_by_name(task.sid)
        participant_properties = await self.env_twilio.fetch_participant_properties(conference.sid)
        hold = _participant_hold(participant_properties, customer_number)
        _check(hold is True, f"Customer put on-hold value: expected True, got {hold!r}")

        await task.update_participant(hold=False)
        print(f"[TRANSFER] Customer {customer_number} taken off hold", flush=True)

        await pause_test_execution(self.status_check_delay)
        conference = await self.env_twilio.fetch_conference_by_name(task.sid)
        participant_properties = await self.env_twilio.fetch_participant_properties(conference.sid)
        hold = _participant_hold(participant_properties, customer_number)
        _check(hold is False, f"Customer put on-hold value: expected False, got {hold!r}")
        hold = _participant_hold(participant_properties, transferee_number)
        _check(hold is False, f"Transferee put on-hold value: expected False, got {hold!r}")
        print("   > PASS: No participant on hold", flush=True)

    async def assert_on_res_wrap_up_and_complete_event(
        self,
        reservation,
        is_transferor: bool,
        transferor_exp_conf_p_size: int = None,
        transferee_exp_p_size: int = None,
    ):
        """
        Assert conference properties and task status on the reservation's wrapup and
        completed events, completing the reservation in between.  The transferor's
        conference stays in progress; the transferee's is expected to be completed.
        """
        wrapup    = expect_event(reservation, 'wrapup')
        completed = expect_event(reservation, 'completed')
        role = 'transferor' if is_transferor else 'transferee'

        await wrapup
        print(f"\n[WRAPUP] Reservation {reservation.sid} ({role}) in wrapup", flush=True)
        try:
            if is_transferor:
                await self.verify_conference_properties(
                    reservation.task.sid, 'in-progress', transferor_exp_conf_p_size
                )
            else:
                await self.verify_conference_properties(
                    reservation.task.sid, 'completed', transferee_exp_p_size
                )
            _check(reservation.task.status != 'completed', (
                "Task status on Reservation wrapup: should not be 'completed'"
            ))
            await reservation.complete()
        except Exception as err:
            completed.cancel()
            raise OutboundTestError(
                f"Failed to validate Conference properties on reservation wrapup event. Error: {err}"
            ) from err

        await completed
        print(f"[WRAPUP] Reservation {reservation.sid} ({role}) completed", flush=True)
        try:
            if is_transferor:
                await self.verify_conference_properties(
                    reservation.task.sid, 'in-progress', transferor_exp_conf_p_size
                )
                _check(reservation.task.status != 'completed', (
                    "Task status on Reservation Completed for Transferor: should not be 'completed'"
                ))
            else:
                # TODO: ORCH-678 endConferenceOnExit – re-enable once fixed:
                # await self.verify_conference_properties(reservation.task.sid, 'completed', 0)
                _check(reservation.task.status == 'completed', (
                    "Task status on Reservation Completed for Transferee: "
                    f"expected 'completed', got {reservation.task.status!r}"
                ))
        except Exception as err:
            raise OutboundTestError(
                f"Failed to validate Conference properties on reservation completed event. Error: {err}"
            ) from err
        print(f"   > PASS: {role} reservation wrapped up and completed", flush=True)
        return reservation

    async def verify_conference_properties(
        self,
        task_sid: str,
        expected_conf_status: str = None,
        expected_conf_participants_size: int = None,
    ) -> None:
        """Fetch the task's conference and assert whichever expectations were given."""
        conference   = await self.env_twilio.fetch_conference_by_name(task_sid)
        participants = await self.env_twilio.fetch_conference_participants(conference.sid)

        if expected_conf_status is not None:
            _check(conference.status == expected_conf_status, (
                f"Conference Status: expected {expected_conf_status!r}, got {conference.status!r}"
            ))

        if expected_conf_participants_size is not None:
            _check(len(participants) == expected_conf_participants_size, (
                f"Conference participant size: expected {expected_conf_participants_size}, "
                f"got {len(participants)}"
            ))
