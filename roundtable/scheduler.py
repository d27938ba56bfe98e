"""Scheduler loop — drives one discussion forward, one turn at a time.

Loop shape (single asyncio event loop, no threads):

    start ──(settle_delay)──▶ tick ──(turn_delay)──▶ tick ──▶ ...

Each tick:
  1. No-op if a generation is in flight (busy).
  2. Zero-turn phase → advance (intro) or idle (terminal summary).
  3. Otherwise resolve the speaker, dispatch:
       scripted   → phrase table, synchronous
       generative → responder, awaited with busy set
  4. Append the turn, then advance the phase unless the turn was a mention
     sidebar or the phase moved underneath us (user interrupt).

External triggers (send, reset) stop the loop, mutate the log/session
synchronously, and restart it. Reset bumps the session's generation token;
a reply whose token no longer matches is dropped instead of appended.

The in-memory log is authoritative. Storage writes happen after each change;
an OSError (or a damaged JSON file) from storage is logged and scheduling
carries on.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from collections.abc import Callable
from typing import Any

from roundtable import phases
from roundtable.characters import refresh_roster
from roundtable.config import Settings
from roundtable.llm import ChatModel
from roundtable.models import (
    Discussion,
    DiscussionMode,
    Participant,
    Phase,
    SentinelSpeaker,
    SessionState,
    Turn,
    speaker_for,
)
from roundtable.phrases import generate_phrase
from roundtable.prompts import opening_line
from roundtable.resolver import detect_mention, resolve_next_speaker
from roundtable.responder import respond
from roundtable.storage import Storage

logger = logging.getLogger(__name__)


class Scheduler:
    """Owns the log and session state of a single discussion."""

    def __init__(
        self,
        discussion: Discussion,
        storage: Storage,
        chat: ChatModel,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.discussion = discussion
        self.roster: list[Participant] = list(discussion.roster)
        self.log: list[Turn] = []
        self.state: SessionState = phases.initial_state()
        self.mention_hint: str | None = None
        self._storage = storage
        self._chat = chat
        self._settings = settings or Settings()
        self._rng = rng or random.Random()
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._running = False
        self._last_ts = 0.0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def discussion_id(self) -> str:
        return self.discussion.id

    @property
    def mode(self) -> DiscussionMode:
        return self.discussion.mode

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def busy(self) -> bool:
        return self.state.busy

    @property
    def running(self) -> bool:
        return self._running

    @property
    def turns(self) -> list[Turn]:
        return list(self.log)

    @property
    def is_idle(self) -> bool:
        return not self.roster or phases.is_idle(self.state, self.mode)

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------

    def start(self, delay: float | None = None) -> None:
        """Cancel any pending tick and schedule the first one."""
        self.stop()
        self._running = True
        self._schedule(self._settings.settle_delay if delay is None else delay)

    def stop(self) -> None:
        """Cancel the pending tick. An in-flight generation keeps running."""
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def close(self) -> None:
        """Stop and cancel outstanding tick tasks (shutdown only)."""
        self.stop()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _schedule(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self._run_tick())
        self._tasks.add(task)
        task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("tick crashed discussion=%s", self.discussion_id, exc_info=exc)

    async def _run_tick(self) -> None:
        ran = True
        try:
            ran = await self.tick()
        finally:
            # A skipped tick leaves rescheduling to the tick that owns the
            # generation. A crashed tick still reschedules; _tick_done logs it.
            if ran and self._running and not self.is_idle:
                self._schedule(self._settings.turn_delay)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> bool:
        """Run one scheduling step. Returns False only when skipped as busy."""
        if self.state.busy:
            logger.debug("tick skipped discussion=%s: generation in flight", self.discussion_id)
            return False
        if not self.roster:
            logger.warning("discussion %s has an empty roster", self.discussion_id)
            return True

        state = self.state
        forced_id = state.forced_speaker_id
        if not phases.needs_turn(state, self.mode):
            if not phases.is_terminal(state, self.mode):
                self._set_state(phases.advance(state, self.mode, len(self.roster)))
            return True

        resolution = resolve_next_speaker(
            state.phase, self.roster, self.log, forced_id,
            mode=self.mode, turn_counter=state.turn_counter, rng=self._rng,
        )
        if forced_id is not None:
            # One-shot: consumed whether or not it matched the roster.
            self.state = self.state.model_copy(update={"forced_speaker_id": None})
        if resolution is None:
            return True

        participant = resolution.participant
        dispatched_phase = self.state.phase
        token = self.state.generation
        logger.debug(
            "dispatch discussion=%s phase=%s speaker=%s role=%s forced=%s",
            self.discussion_id, dispatched_phase.value, participant.id,
            resolution.role.value, resolution.forced,
        )

        if participant.kind == "scripted":
            text, error = generate_phrase(participant, self.discussion.topic, self._rng), False
        else:
            self.state = self.state.model_copy(update={"busy": True})
            try:
                reply = await respond(
                    participant, self.discussion.topic, list(self.log), resolution.role,
                    self._chat,
                    window=self._settings.context_window,
                    timeout=self._settings.generation_timeout,
                )
            finally:
                self.state = self.state.model_copy(update={"busy": False})
            if self.state.generation != token:
                logger.info(
                    "dropping stale reply discussion=%s speaker=%s generation=%d current=%d",
                    self.discussion_id, participant.id, token, self.state.generation,
                )
                return True
            text, error = reply.text, reply.error

        self._append(Turn(
            id=uuid.uuid4().hex,
            speaker=speaker_for(participant),
            text=text,
            role=resolution.role,
            error=error,
        ))
        if not resolution.forced and self.state.phase == dispatched_phase:
            self._set_state(phases.advance(self.state, self.mode, len(self.roster)))
        return True

    # ------------------------------------------------------------------
    # Inbound triggers
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Resume from storage: refreshed roster, log, saved phase; then start."""
        roster = self._storage.load_roster(self.discussion_id)
        definitions = self._storage.get_custom_characters()
        self.roster = refresh_roster(roster, definitions)
        self.log = self._storage.load_log(self.discussion_id)
        if self.log:
            self._last_ts = self.log[-1].timestamp

        saved = self._storage.load_session(self.discussion_id)
        if saved is None or saved.phase not in phases.TRANSITIONS[self.mode]:
            saved = phases.initial_state()
        self.state = saved.model_copy(update={
            "busy": self.state.busy,
            "generation": self.state.generation + 1,
        })
        self.mention_hint = None

        if not self.log:
            self._emit_opening()
        logger.info(
            "loaded discussion=%s phase=%s turns=%d roster=%d",
            self.discussion_id, self.state.phase.value, len(self.log), len(self.roster),
        )
        self.start()

    def resume(self) -> None:
        """Re-open a live room: refresh the roster, keep the in-memory log, restart."""
        self.roster = refresh_roster(self.roster, self._storage.get_custom_characters())
        self.mention_hint = None
        logger.info("resumed discussion=%s phase=%s", self.discussion_id, self.state.phase.value)
        self.start()

    def send(self, text: str) -> Turn:
        """Append a user turn and apply the interrupt / mention transitions."""
        text = text.strip()
        if not text:
            raise ValueError("Message is empty")
        self.stop()
        turn = self._append(Turn(
            id=uuid.uuid4().hex,
            speaker=SentinelSpeaker(role="user"),
            text=text,
        ))
        mentioned = detect_mention(text, self.roster)
        self._set_state(phases.after_user_turn(self.state, self.mode, mentioned))
        self.mention_hint = None
        self.start(self._settings.user_settle_delay)
        return turn

    def mention(self, name: str) -> str:
        """Flag intent to address `name`; returns the draft text "@Name ".

        Does not force anything. Forcing happens when the sent text contains
        the mention.
        """
        for member in self.roster:
            if member.name == name:
                self.mention_hint = member.id
                return f"@{member.name} "
        raise KeyError(name)

    def reset(self) -> None:
        """Clear the log, restart the pipeline and re-open with the host line."""
        self.stop()
        self.log = []
        self._persist("clear log", self._storage.clear_log, self.discussion_id)
        self._set_state(phases.reset_state(self.state, self.mode))
        self.mention_hint = None
        self._emit_opening()
        logger.info("reset discussion=%s generation=%d", self.discussion_id, self.state.generation)
        self.start()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit_opening(self) -> Turn:
        opening = self.discussion.model_copy(update={"roster": self.roster})
        return self._append(Turn(
            id=uuid.uuid4().hex,
            speaker=SentinelSpeaker(role="host"),
            text=opening_line(opening),
        ))

    def _append(self, turn: Turn) -> Turn:
        self._last_ts = max(time.time(), self._last_ts + 1e-6)
        turn = turn.model_copy(update={"timestamp": self._last_ts})
        self.log.append(turn)
        self._persist("append turn", self._storage.append_turn, self.discussion_id, turn)
        return turn

    def _set_state(self, new: SessionState) -> None:
        old = self.state
        self.state = new
        if (old.phase, old.turn_counter) != (new.phase, new.turn_counter):
            self._persist("save session", self._storage.save_session, self.discussion_id, new)

    def _persist(self, action: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except (OSError, ValueError):
            # ValueError covers a damaged JSON file (JSONDecodeError, ValidationError).
            logger.exception("persistence failed (%s) discussion=%s", action, self.discussion_id)
