from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from patti.agents import PlayerAgent
from patti.game import GameEngine
from patti.models import Action, ActionType, GameError

LOGGER = logging.getLogger("patti_session")

Observer = Callable[[str, Dict[str, object]], Awaitable[None]]

# TableSession serializes every action for one table through a single lock and
# paces automated seats. The engine underneath stays synchronous and pure.


class TableSession:
    """Plays rounds by prompting agents in turn order until the table has a winner."""

    def __init__(
        self,
        engine: GameEngine,
        agents: Dict[str, PlayerAgent],
        *,
        bot_delay_ms: Optional[int] = None,
        move_time_ms: Optional[int] = None,
        max_rounds: Optional[int] = None,
        max_rejections: int = 3,
    ) -> None:
        missing = [player.name for player in engine.players if player.id not in agents]
        if missing:
            raise ValueError(f"No agent for players: {', '.join(missing)}")
        self.engine = engine
        self.agents = dict(agents)
        self.bot_delay_ms = engine.config.bot_delay_ms if bot_delay_ms is None else bot_delay_ms
        self.move_time_ms = engine.config.move_time_ms if move_time_ms is None else move_time_ms
        self.max_rounds = max_rounds
        self.max_rejections = max_rejections
        self.rounds_played = 0
        self.lock = asyncio.Lock()
        self.observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> None:
        self.observers.append(observer)

    async def run(self, seed: Optional[int] = None) -> Dict[str, object]:
        # One session = repeated rounds until only one funded seat remains.
        while self.engine.can_start_round():
            if self.max_rounds is not None and self.rounds_played >= self.max_rounds:
                break
            round_seed = None if seed is None else seed + self.rounds_played
            await self.play_round(round_seed)

        result = self.engine.match_result_payload()
        await self._broadcast("match_end", result)
        return result

    async def play_round(self, seed: Optional[int] = None) -> Dict[str, object]:
        async with self.lock:
            state = self.engine.start_round(seed)
            payload = self.engine.start_round_payload()
        LOGGER.info("Round %s started with %s players", state.round_id, len(state.players))
        await self._broadcast("start_round", payload)
        await self._broadcast("state", {"round_id": state.round_id})

        while not self.engine.is_round_complete():
            actor = self.engine.next_actor()
            if actor is None:
                raise RuntimeError("Round is open but nobody is due to act")
            await self._take_turn(actor)

        self.rounds_played += 1
        end_payload = self.engine.end_round_payload()
        LOGGER.info("Round %s finished; winner=%s pot=%s", end_payload["round_id"], end_payload["winner"], end_payload["pot"])
        await self._broadcast("end_round", end_payload)
        return end_payload

    async def submit(self, player_id: str, action: Action) -> List[Dict[str, object]]:
        """Apply one action in order; GameError propagates with the snapshot untouched."""
        async with self.lock:
            try:
                events = self.engine.apply_action(player_id, action)
            except GameError as exc:
                LOGGER.warning(
                    "Rejected action player=%s action=%s amount=%s reason=%s",
                    player_id,
                    action.type.value,
                    action.amount,
                    exc.msg,
                )
                raise
            state = self.engine.state
        assert state is not None
        LOGGER.debug(
            "Applied action round=%s player=%s action=%s amount=%s",
            state.round_id,
            player_id,
            action.type.value,
            action.amount,
        )
        for event in events:
            await self._broadcast("event", event)
        await self._broadcast("state", {"round_id": state.round_id})
        return events

    async def _take_turn(self, actor: str) -> None:
        agent = self.agents[actor]
        try:
            await self._prompt(actor, agent)
        finally:
            agent.end_turn()

    async def _prompt(self, actor: str, agent: PlayerAgent) -> None:
        rejections = 0
        turn = self.engine.state.turn if self.engine.state else 0
        while self.engine.next_actor() == actor and not self.engine.is_round_complete():
            state = self.engine.state
            assert state is not None
            if state.turn != turn:
                return
            if agent.is_automated and self.bot_delay_ms > 0:
                await asyncio.sleep(self.bot_delay_ms / 1000)

            action = await self._await_decision(agent)
            if action is None:
                LOGGER.info("Player %s timed out; applying fallback", actor)
                await self.submit(actor, self._fallback_action(actor))
                return
            try:
                await self.submit(actor, action)
            except GameError as exc:
                agent.notify_rejected(action, exc)
                rejections += 1
                if agent.is_automated and rejections >= self.max_rejections:
                    LOGGER.info("Player %s exceeded rejection limit; applying fallback", actor)
                    await self.submit(actor, self._fallback_action(actor))
                    return

    async def _await_decision(self, agent: PlayerAgent) -> Optional[Action]:
        state = self.engine.state
        assert state is not None
        if self.move_time_ms <= 0:
            return await agent.choose_action(state)
        try:
            return await asyncio.wait_for(agent.choose_action(state), timeout=self.move_time_ms / 1000)
        except asyncio.TimeoutError:
            return None

    def _fallback_action(self, player_id: str) -> Action:
        # Unresponsive seats decline a pending sideshow, otherwise fold.
        window = self.engine.legal_actions(player_id)
        if ActionType.DECLINE_SIDESHOW in window.legal:
            return Action.respond(False)
        return Action.fold()

    async def _broadcast(self, msg_type: str, payload: Dict[str, object]) -> None:
        for observer in list(self.observers):
            await observer(msg_type, payload)
