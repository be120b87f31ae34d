"""
Outbound Conference Transfer Flow
=================================
Drives the complete outbound scenario through the helpers, in the order the
live suite runs it:

  1. Alice's worker becomes ready, creates an outbound task and conferences in
     the customer.
  2. Alice transfers the task to Bob (COLD or WARM); the customer is put on hold.
  3. Bob accepts; the customer is taken off hold.
  4. Both reservations wrap up and complete.
"""
import pytest

from outbound_testing.fakes import FakeReservation
from outbound_testing.outbound_common_helpers import TRANSFER_MODE_COLD, TRANSFER_MODE_WARM


@pytest.mark.asyncio
@pytest.mark.parametrize("transfer_mode", [TRANSFER_MODE_COLD, TRANSFER_MODE_WARM])
async def test_outbound_transfer_flow(helpers, env_twilio, worker, credentials, transfer_mode):
    customer = credentials.CUSTOMER_NUMBER
    alice    = credentials.ALICE_NUMBER
    bob      = credentials.BOB_NUMBER

    # ------------------------------------------------------------------
    # Step 1: outbound conference
    # ------------------------------------------------------------------
    alice_reservation = await helpers.set_up_outbound_conference(worker)
    task = alice_reservation.task
    conference = env_twilio.add_conference(task.sid, participants={customer: False, alice: False})

    # ------------------------------------------------------------------
    # Step 2: transfer to Bob; the platform parks the customer
    # ------------------------------------------------------------------
    conference.participants[customer] = True
    await helpers.assert_on_transferor_accepted_and_initiate_transfer(
        alice_reservation, True, credentials.MULTI_TASK_BOB_SID, transfer_mode, 'in-progress', 2,
    )
    assert task.transfers == [(credentials.MULTI_TASK_BOB_SID, transfer_mode)]

    # ------------------------------------------------------------------
    # Step 3: Bob joins and un-holds the customer
    # ------------------------------------------------------------------
    conference.participants[bob] = False
    bob_reservation = FakeReservation('WR_BOB', task, credentials.MULTI_TASK_BOB_SID,
                                      status='accepted', completes_task=True)

    async def _update_participant(**options):
        task.participant_updates.append(options)
        conference.participants[customer] = options['hold']
    task.update_participant = _update_participant

    await helpers.assert_on_transferee_accepted(bob_reservation, bob, 'in-progress', 3)

    # ------------------------------------------------------------------
    # Step 4: Alice leaves; the conference carries on with Bob
    # ------------------------------------------------------------------
    del conference.participants[alice]
    alice_reservation.fire_on_subscribe('wrapup', alice_reservation)
    await helpers.assert_on_res_wrap_up_and_complete_event(alice_reservation, True, 2, 0)
    assert task.status != 'completed'

    # Bob hangs up, which ends the conference
    conference.status = 'completed'
    conference.participants.clear()
    bob_reservation.fire_on_subscribe('wrapup', bob_reservation)
    await helpers.assert_on_res_wrap_up_and_complete_event(bob_reservation, False, 2, 0)

    assert task.status == 'completed'
    assert alice_reservation.status == 'completed'
    assert bob_reservation.status == 'completed'
