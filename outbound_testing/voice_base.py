"""
Timing and event primitives shared by the voice test helpers.
"""
import asyncio


async def pause_test_execution(ms: int) -> None:
    """Suspend the calling coroutine for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


def expect_event(emitter, event: str) -> asyncio.Future:
    """
    Subscribe to ``event`` on an SDK object and return a future for its first payload.

    The emitter only needs an ``on(event, handler)`` method.  The subscription is
    made immediately, so the future can be armed before the instruction that makes
    the platform fire the event.  Handlers may be invoked from any thread; the
    payload is handed back to the loop that armed the future.

    Handlers called with a single argument resolve to that argument, handlers called
    with none resolve to ``None`` and anything else resolves to the argument tuple.
    Once the future is settled or cancelled the handler is detached through the
    emitter's ``remove_listener`` or ``off`` method, where it has one; events that
    arrive after the loop has closed are dropped.
    There is no timeout: an event that never arrives leaves the future pending.
    """
    loop   = asyncio.get_running_loop()
    future = loop.create_future()

    def _settle(payload):
        if not future.done():
            future.set_result(payload)

    def _handler(*args):
        if loop.is_closed():
            return
        if not args:
            payload = None
        elif len(args) == 1:
            payload = args[0]
        else:
            payload = args
        loop.call_soon_threadsafe(_settle, payload)

    def _unsubscribe(_):
        remove = getattr(emitter, 'remove_listener', None) or getattr(emitter, 'off', None)
        if remove is not None:
            remove(event, _handler)

    emitter.on(event, _handler)
    future.add_done_callback(_unsubscribe)
    return future
