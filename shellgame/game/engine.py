"""Shell game engine with a timed phase state machine."""

import asyncio
import logging
from dataclasses import dataclass, field
from random import Random
from typing import Any, Awaitable, Callable

from transitions import EventData, Machine

from shellgame.cups import CUP_COUNT, CupTable
from shellgame.game.events import EventEmitter, EventType, GameEvent
from shellgame.game.state import GamePhase, is_valid_transition
from shellgame.game.timing import RoundTiming

logger = logging.getLogger(__name__)

# Redraws allowed when picking the second slot of a swap
MAX_SWAP_DRAWS = 64

SleepFn = Callable[[float], Awaitable[Any]]
ResultSink = Callable[[bool], None]
RoundEndSink = Callable[[], None]


class EngineInvariantError(RuntimeError):
    """Raised when the engine would break one of its own invariants."""


@dataclass
class RoundState:
    """
    State of a single round.

    The coin is tracked by cup identity, never by slot; ``coin_slot`` is
    derived from the table on every lookup.
    """

    table: CupTable = field(default_factory=CupTable)
    selected_slot: int | None = None
    won: bool | None = None
    shuffle_step: int | None = None
    total_shuffles: int = 0
    swaps: list[tuple[int, int]] = field(default_factory=list)
    _coin_cup_id: int | None = field(default=None, init=False, repr=False)

    @property
    def coin_cup_id(self) -> int | None:
        """Identity of the cup hiding the coin."""
        return self._coin_cup_id

    def hide_coin_under(self, cup_id: int) -> None:
        """Assign the coin to a cup. Only allowed once per round."""
        if self._coin_cup_id is not None:
            raise EngineInvariantError(
                f"Coin already under cup {self._coin_cup_id}, cannot move it to {cup_id}"
            )
        if cup_id not in self.table.identities:
            raise EngineInvariantError(f"No cup with id {cup_id}")
        self._coin_cup_id = cup_id

    @property
    def coin_slot(self) -> int:
        """Slot currently holding the coin's cup."""
        if self._coin_cup_id is None:
            raise EngineInvariantError("Coin has not been placed")
        return self.table.slot_of(self._coin_cup_id)


class ShuffleEngine:
    """
    Find-the-coin engine using a state machine.

    Owns one round at a time: places the coin, shuffles the cups on a timed
    schedule, then resolves a single guess. Completely UI-agnostic;
    communication happens through events, callbacks and return values only.
    """

    # State machine states
    STATES = [p.name.lower() for p in GamePhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "place_coin", "source": "idle", "dest": "placing"},
        {"trigger": "hide_coin", "source": "placing", "dest": "shuffling"},
        {"trigger": "open_guessing", "source": "shuffling", "dest": "guessing"},
        {"trigger": "reveal", "source": "guessing", "dest": "revealing"},
        {"trigger": "finish_round", "source": "revealing", "dest": "idle"},
        {
            "trigger": "abort_round",
            "source": ["placing", "shuffling", "guessing", "revealing"],
            "dest": "idle",
        },
    ]

    def __init__(
        self,
        timing: RoundTiming | None = None,
        rng: Random | None = None,
        sleep: SleepFn = asyncio.sleep,
        on_result: ResultSink | None = None,
        on_round_end: RoundEndSink | None = None,
    ) -> None:
        """
        Initialize the engine in the idle phase.

        Args:
            timing: Delays and shuffle-count range (uses defaults if not provided)
            rng: Random number generator for reproducible rounds
            sleep: Coroutine used for every delay
            on_result: Called once per round with the outcome of the guess
            on_round_end: Called once per round after the reveal delay
        """
        self.timing = timing or RoundTiming()
        self.rng = rng or Random()
        self._sleep = sleep
        self._on_result = on_result
        self._on_round_end = on_round_end

        self.round: RoundState | None = None
        self.events = EventEmitter()
        self._sequence_task: asyncio.Task | None = None
        self._end_task: asyncio.Task | None = None
        self._sequence_started = False

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            send_event=True,
            after_state_change="_on_phase_changed",
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> GamePhase:
        """Get current phase as enum."""
        return GamePhase[self._machine_state.upper()]  # type: ignore

    @property
    def coin_visible(self) -> bool:
        """The coin shows while it is placed and once the guess is revealed."""
        return self.phase in (GamePhase.PLACING, GamePhase.REVEALING)

    @property
    def coin_slot(self) -> int | None:
        """Slot of the coin's cup, or None when no round is active."""
        return self.round.coin_slot if self.round is not None else None

    @property
    def sequence_task(self) -> asyncio.Task | None:
        """The task running the current round sequence, if any."""
        return self._sequence_task

    @property
    def end_task(self) -> asyncio.Task | None:
        """The pending round-end task, if any."""
        return self._end_task

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def _on_phase_changed(self, event: EventData) -> None:
        """Publish every phase transition."""
        source = GamePhase[event.transition.source.upper()]
        dest = GamePhase[event.transition.dest.upper()]
        if not is_valid_transition(source, dest):
            raise EngineInvariantError(f"Illegal phase change {source} -> {dest}")
        self.events.emit_new(
            EventType.PHASE_CHANGED,
            previous=source.name,
            phase=dest.name,
            coin_visible=self.coin_visible,
        )

    def initialize(self) -> RoundState:
        """
        Set up a fresh round: cups in their starting slots, coin under a
        uniformly random cup, phase PLACING.
        """
        if self.phase != GamePhase.IDLE:
            raise EngineInvariantError(f"Round already in progress ({self.phase})")

        round_state = RoundState()
        round_state.hide_coin_under(self.rng.randrange(CUP_COUNT))
        self.round = round_state
        self._sequence_started = False

        self.place_coin()
        self.events.emit_new(
            EventType.ROUND_STARTED,
            cups=round_state.table.identities,
            coin_cup_id=round_state.coin_cup_id,
        )
        logger.info("Round started, coin under cup %d", round_state.coin_cup_id)
        return round_state

    def start_round(self) -> asyncio.Task | None:
        """
        Initialize a round and schedule its sequence on the running loop.

        Returns:
            The sequence task, or None if a round is already in progress
        """
        if self.phase != GamePhase.IDLE:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                message="Round already in progress",
                phase=self.phase.name,
            )
            return None

        loop = asyncio.get_running_loop()
        self.initialize()
        self._sequence_task = loop.create_task(self.run_round_sequence())
        return self._sequence_task

    async def run_round_sequence(self) -> None:
        """Drive the round from PLACING through SHUFFLING into GUESSING."""
        if self.phase != GamePhase.PLACING or self._sequence_started:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                message="Round sequence already running",
                phase=self.phase.name,
            )
            return
        self._sequence_started = True

        await self._sleep(self.timing.placing_dwell)
        self.hide_coin()

        await self._sleep(self.timing.shuffle_lead_in)
        await self._shuffle()

        self.open_guessing()
        logger.debug("Waiting for guess")

    async def _shuffle(self) -> None:
        """Run N randomized pairwise swaps."""
        round_state = self._require_round()
        total = self.rng.randint(self.timing.min_shuffles, self.timing.max_shuffles)
        round_state.total_shuffles = total
        self.events.emit_new(EventType.SHUFFLE_STARTED, total_shuffles=total)

        for step in range(total):
            round_state.shuffle_step = step + 1
            slot_a, slot_b = self.pick_swap()
            self._swap(slot_a, slot_b)
            await self._sleep(self.timing.swap_settle)
            await self._sleep(self.timing.step_interval)

        round_state.shuffle_step = None
        self.events.emit_new(EventType.SHUFFLE_COMPLETE, total_shuffles=total)

    def pick_swap(self) -> tuple[int, int]:
        """Draw two distinct slots uniformly at random."""
        slot_a = self.rng.randrange(CUP_COUNT)
        for _ in range(MAX_SWAP_DRAWS):
            slot_b = self.rng.randrange(CUP_COUNT)
            if slot_b != slot_a:
                return slot_a, slot_b
        raise EngineInvariantError(f"Could not draw a slot distinct from {slot_a}")

    def _swap(self, slot_a: int, slot_b: int) -> None:
        """Swap the cups in two slots and publish the new layout."""
        if self.phase != GamePhase.SHUFFLING:
            raise EngineInvariantError(f"Cannot swap cups during {self.phase}")
        if slot_a == slot_b:
            raise EngineInvariantError(f"Swap slots must differ, got {slot_a} twice")

        round_state = self._require_round()
        before = sorted(round_state.table.identities)
        round_state.table.swap(slot_a, slot_b)
        if sorted(round_state.table.identities) != before or not round_state.table.is_bijection():
            raise EngineInvariantError(f"Swap broke the cup layout: {round_state.table!r}")

        round_state.swaps.append((slot_a, slot_b))
        self.events.emit_new(
            EventType.CUPS_SWAPPED,
            slots=(slot_a, slot_b),
            cups=round_state.table.identities,
            step=round_state.shuffle_step,
            total_shuffles=round_state.total_shuffles,
        )
        logger.debug(
            "Shuffle %s/%d swapped slots %d and %d",
            round_state.shuffle_step,
            round_state.total_shuffles,
            slot_a,
            slot_b,
        )

    def guess(self, slot: int) -> bool | None:
        """
        Player picks the cup in a slot.

        Args:
            slot: Slot index in [0, CUP_COUNT)

        Returns:
            True if the coin's cup sits in that slot, False if not,
            None if guessing is not open
        """
        if self.phase != GamePhase.GUESSING:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                message="Cannot guess in current phase",
                phase=self.phase.name,
            )
            return None
        if not 0 <= slot < CUP_COUNT:
            raise ValueError(f"Slot must be between 0 and {CUP_COUNT - 1}, got {slot}")

        loop = asyncio.get_running_loop()
        round_state = self._require_round()
        picked = round_state.table[slot]
        won = picked.id == round_state.coin_cup_id
        round_state.selected_slot = slot
        round_state.won = won

        self.reveal()
        self.events.emit_new(EventType.GUESS_MADE, slot=slot, cup_id=picked.id)
        self.events.emit_new(
            EventType.PLAYER_WINS if won else EventType.PLAYER_LOSES,
            slot=slot,
            coin_slot=round_state.coin_slot,
        )
        logger.info("Guessed slot %d: %s", slot, "won" if won else "lost")

        if self._on_result is not None:
            self._on_result(won)

        self._end_task = loop.create_task(self._end_round_after_reveal())
        return won

    async def _end_round_after_reveal(self) -> None:
        """Hold the reveal, then discard the round."""
        await self._sleep(self.timing.reveal_delay)

        won = self._require_round().won
        self.round = None
        self.finish_round()
        self.events.emit_new(EventType.ROUND_ENDED, won=won)
        logger.info("Round ended")

        if self._on_round_end is not None:
            self._on_round_end()

    def cancel(self) -> bool:
        """
        Tear down the current round, cancelling any pending delay.

        Nothing is reported to the result sink for an aborted round.

        Returns:
            True if a round was in progress
        """
        current = _current_task()
        for task in (self._sequence_task, self._end_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._sequence_task = None
        self._end_task = None

        if self.phase == GamePhase.IDLE:
            return False

        aborted_phase = self.phase
        self.round = None
        self.abort_round()
        self.events.emit_new(EventType.ROUND_ABORTED, phase=aborted_phase.name)
        logger.info("Round aborted during %s", aborted_phase)
        return True

    def snapshot(self) -> dict[str, Any]:
        """Render-ready view of the current state."""
        round_state = self.round
        if round_state is None:
            return {
                "phase": self.phase.name,
                "cups": [],
                "coin_visible": False,
                "coin_slot": None,
                "shuffle_step": None,
                "total_shuffles": 0,
                "selected_slot": None,
                "won": None,
            }

        visible = self.coin_visible
        return {
            "phase": self.phase.name,
            "cups": [{"id": c.id, "slot": c.slot} for c in round_state.table],
            "coin_visible": visible,
            "coin_slot": round_state.coin_slot if visible else None,
            "shuffle_step": round_state.shuffle_step,
            "total_shuffles": round_state.total_shuffles,
            "selected_slot": round_state.selected_slot,
            "won": round_state.won,
        }

    def _require_round(self) -> RoundState:
        if self.round is None:
            raise EngineInvariantError("No round in progress")
        return self.round


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
