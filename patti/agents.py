from __future__ import annotations

import asyncio
import random
from typing import Callable, Iterable, List, Optional

from .models import Action, GameError, RoundState

# A strategy maps (snapshot, own player id, rng) to an action. It only chooses;
# validation and state changes stay with the rules engine.
Strategy = Callable[[RoundState, str, random.Random], Action]


class PlayerAgent:
    """Decides the next action for one seat from a read-only round snapshot."""

    is_automated = False

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id

    async def choose_action(self, state: RoundState) -> Action:
        raise NotImplementedError

    def notify_rejected(self, action: Action, error: GameError) -> None:
        """Called when the engine rejected the agent's last action."""

    def end_turn(self) -> None:
        """Called once the agent's turn is over, however it ended."""


class BotAgent(PlayerAgent):
    is_automated = True

    def __init__(self, player_id: str, strategy: Strategy, rng: Optional[random.Random] = None) -> None:
        super().__init__(player_id)
        self.strategy = strategy
        self.rng = rng or random.Random()

    async def choose_action(self, state: RoundState) -> Action:
        return self.strategy(state, self.player_id, self.rng)


class HumanAgent(PlayerAgent):
    """Seat driven by a UI: actions are submitted from outside and awaited here."""

    def __init__(self, player_id: str) -> None:
        super().__init__(player_id)
        self.queue: "asyncio.Queue[Action]" = asyncio.Queue()
        self.rejections: List[str] = []

    def submit(self, action: Action) -> None:
        self.queue.put_nowait(action)

    async def choose_action(self, state: RoundState) -> Action:
        return await self.queue.get()

    @property
    def has_pending(self) -> bool:
        return not self.queue.empty()

    def notify_rejected(self, action: Action, error: GameError) -> None:
        self.rejections.append(error.msg)

    def end_turn(self) -> None:
        # Input left over from a finished turn must not leak into the next one.
        while not self.queue.empty():
            self.queue.get_nowait()


class ScriptedAgent(PlayerAgent):
    """Replays a fixed list of actions; useful for deterministic tables."""

    is_automated = True

    def __init__(self, player_id: str, actions: Iterable[Action]) -> None:
        super().__init__(player_id)
        self.actions = list(actions)

    async def choose_action(self, state: RoundState) -> Action:
        if not self.actions:
            return Action.fold()
        return self.actions.pop(0)
