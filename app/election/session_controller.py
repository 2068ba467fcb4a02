"""
Voting session state machine.

not_started -> in_progress -> ended, where in_progress walks the
posts in order, one timed window per post. The controller is the
only writer of the SessionControl row and the only owner of the
countdown timer.
"""

import asyncio
import contextlib

from app.config import POST_WINDOW_SECONDS, TIMER_TICK_SECONDS
from app.database import db_handler
from app.election import utils
from app.election.exceptions import ConfigError, VotingClosedError, VotingInProgressError
from app.election.model.cruds import crud
from app.election.model.enums import SessionStatusEnum, ElectionPublicEventEnum
from app.election.realtime import RealtimeEvent, notifier as realtime_notifier
from app.logger import election_logger, logger


class SessionController(object):
    """
    Serializes start/advance/end and the timer ticks through one lock,
    broadcasts only after the state change is committed.
    """

    def __init__(self, notifier, window_seconds: int = POST_WINDOW_SECONDS, tick_seconds: float = TIMER_TICK_SECONDS) -> None:
        self.notifier = notifier
        self.window_seconds = window_seconds
        self.tick_seconds = tick_seconds
        self._lock = asyncio.Lock()
        self._timer: asyncio.Task | None = None

    @property
    def timer(self) -> asyncio.Task | None:
        return self._timer

    def remaining_time(self, control) -> int:
        if not control.is_open:
            return 0
        return utils.remaining_time(control.post_start_at, window=self.window_seconds)

    def describe(self, control) -> dict:
        return {**control.to_dict(), "remainingTime": self.remaining_time(control)}

    # ----- Operations -----

    @db_handler.method_with_session
    async def state(self, session):
        return await crud.get_session_control(session)

    @db_handler.method_with_session
    async def start(self, session):
        async with self._lock:
            control = await crud.get_session_control(session)
            if control.status == SessionStatusEnum.in_progress:
                raise VotingInProgressError()

            posts = await crud.get_posts(session)
            if not posts:
                raise ConfigError("No posts configured, restore the posts before starting")

            control.status = SessionStatusEnum.in_progress
            control.current_post_index = 0
            control.current_post = posts[0].name
            control.post_start_at = utils.tz_now()
            control.version += 1
            await db_handler.commit(session)

            await self.notifier.emit(RealtimeEvent.SESSION_STATUS, {"status": control.status})
            await self.notifier.emit(RealtimeEvent.SESSION_STARTED)
            await self._show_post(control.current_post, self.window_seconds)
            self._start_timer(control)

        logger.log("ELECTION", "Voting started with %s" % utils.post_label(control.current_post))
        await election_logger.info(
            event=ElectionPublicEventEnum.VOTING_STARTED, post=utils.post_label(control.current_post)
        )
        return control

    @db_handler.method_with_session
    async def advance(self, session):
        async with self._lock:
            control = await crud.get_session_control(session)
            if control.status != SessionStatusEnum.in_progress:
                raise VotingClosedError()
            return await self._advance(session, control)

    @db_handler.method_with_session
    async def end(self, session):
        async with self._lock:
            control = await crud.get_session_control(session)
            return await self._close(session, control)

    @db_handler.method_with_session
    async def resume(self, session):
        """
        Restarts the countdown of a session left in progress
        by a previous process.
        """
        async with self._lock:
            control = await crud.get_session_control(session)
            if control.is_open and self._timer is None:
                logger.warning("Resuming the countdown of %s" % utils.post_label(control.current_post))
                self._start_timer(control)
            return control

    @db_handler.method_with_session
    async def snapshot(self, session) -> list[tuple[str, dict]]:
        async with self._lock:
            return await self._snapshot(session)

    @db_handler.method_with_session
    async def join(self, session, websocket):
        """
        Connects a realtime client and sends it the current state.

        The client is registered and caught up under the transition
        lock, so every later broadcast comes after its snapshot.
        """
        await websocket.accept()
        async with self._lock:
            await self.notifier.register(websocket, await self._snapshot(session))

    async def _snapshot(self, session) -> list[tuple[str, dict]]:
        """
        Events a freshly connected client needs to catch up.
        """
        control = await crud.get_session_control(session)
        events = [(RealtimeEvent.SESSION_STATUS, {"status": control.status})]
        if control.status == SessionStatusEnum.in_progress:
            events.append((RealtimeEvent.SESSION_STARTED, {}))
            remaining = self.remaining_time(control)
            if remaining > 0:
                events.append((
                    RealtimeEvent.SHOW_POST,
                    {"post": control.current_post, "remainingTime": remaining},
                ))
        elif control.status == SessionStatusEnum.ended:
            events.append((RealtimeEvent.SESSION_ENDED, {}))
        return events

    async def shutdown(self):
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        self._lock = asyncio.Lock()

    # ----- Transitions, the caller holds the lock -----

    async def _advance(self, session, control):
        posts = await crud.get_posts(session)
        next_index = control.current_post_index + 1
        if next_index >= len(posts):
            return await self._close(session, control)

        control.current_post = posts[next_index].name
        control.current_post_index = next_index
        control.post_start_at = utils.tz_now()
        control.version += 1
        await db_handler.commit(session)

        self._start_timer(control)
        await self._show_post(control.current_post, self.window_seconds)

        logger.log("ELECTION", "Voting moved to %s" % utils.post_label(control.current_post))
        await election_logger.info(
            event=ElectionPublicEventEnum.POST_ADVANCED, post=utils.post_label(control.current_post)
        )
        return control

    async def _close(self, session, control):
        control.status = SessionStatusEnum.ended
        control.current_post = None
        control.post_start_at = None
        control.version += 1
        await db_handler.commit(session)

        self._cancel_timer()
        await self.notifier.emit(RealtimeEvent.SESSION_STATUS, {"status": control.status})
        await self.notifier.emit(RealtimeEvent.SESSION_ENDED)

        logger.log("ELECTION", "Voting ended")
        await election_logger.info(event=ElectionPublicEventEnum.VOTING_ENDED)
        return control

    async def _show_post(self, post, remaining: int):
        await self.notifier.emit(
            RealtimeEvent.SHOW_POST, {"post": utils.post_label(post), "remainingTime": remaining}
        )

    # ----- Timer -----

    def _start_timer(self, control):
        self._cancel_timer()
        self._timer = asyncio.create_task(
            self._run_timer(control.version, utils.post_label(control.current_post), control.post_start_at)
        )

    def _cancel_timer(self):
        timer, self._timer = self._timer, None
        # The timer may be the one advancing, it finishes on its own
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _run_timer(self, version: int, post: str, started_at):
        while True:
            await asyncio.sleep(self.tick_seconds)
            try:
                if not await self._tick(version, post, started_at):
                    return
            except Exception:
                logger.exception("Timer tick for %s failed, retrying on the next tick" % post)

    @db_handler.method_with_session
    async def _tick(self, session, version: int, post: str, started_at) -> bool:
        """
        Returns False once this timer has nothing left to do.
        """
        async with self._lock:
            control = await crud.get_session_control(session)
            if control.version != version or not control.is_open:
                logger.debug("Stale timer for %s stopped" % post)
                return False

            remaining = utils.remaining_time(started_at, window=self.window_seconds)
            if remaining > 0:
                await self._show_post(post, remaining)
                return True

            await self._advance(session, control)
            return False


session_controller = SessionController(notifier=realtime_notifier)
