from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Coroutine, Dict, Optional, Set, Tuple

import websockets
from websockets.server import WebSocketServerProtocol

from patti.agents import BotAgent, HumanAgent, PlayerAgent, Strategy
from patti.game import GameEngine
from patti.models import Action, ActionType, GameError, LobbyError, TableConfig
from patti.rules import generate_game_id, invite_link
from practice.bots import baseline_strategy

from .session import TableSession

LOGGER = logging.getLogger("patti_host")

# HostServer bridges one browser seat to a locally simulated table. The browser
# sends actions over a WebSocket and receives snapshots scoped to its own seat;
# every other seat is an automated agent running in-process.


class BrowserSeat(HumanAgent):
    """Human seat whose rejections are reported back over its socket."""

    def __init__(self, player_id: str, websocket: WebSocketServerProtocol, server: "HostServer") -> None:
        super().__init__(player_id)
        self.websocket = websocket
        self.server = server
        # (round_id, turn) the queued action was sent for; one action per turn.
        self.claimed: Optional[Tuple[str, int]] = None

    def notify_rejected(self, action: Action, error: GameError) -> None:
        super().notify_rejected(action, error)
        self.claimed = None
        self.server._spawn(self.server._send_error(self.websocket, error.code, error.msg))

    def end_turn(self) -> None:
        super().end_turn()
        self.claimed = None


@dataclass
class ClientSession:
    player_id: str
    name: str
    websocket: WebSocketServerProtocol
    agent: BrowserSeat


class HostServer:
    def __init__(
        self,
        config: TableConfig,
        bots: int = 3,
        strategy: Strategy = baseline_strategy,
        seed: Optional[int] = None,
        base_url: str = "http://localhost:8765",
    ) -> None:
        if bots < 1:
            raise ValueError("At least one automated opponent is required")
        if bots + 1 > config.max_players:
            raise ValueError("Table config does not have enough seats")
        self.engine = GameEngine(config)
        self.game_id = generate_game_id()
        self.bots = bots
        self.strategy = strategy
        self.seed = seed
        self.base_url = base_url
        self.client: Optional[ClientSession] = None
        self.session: Optional[TableSession] = None
        self.session_task: Optional[asyncio.Task] = None
        self.background: Set[asyncio.Task] = set()

    async def start(self, host: str = "0.0.0.0", port: int = 8765) -> None:
        async with websockets.serve(self._handle_connection, host, port):
            LOGGER.info("Table %s listening on %s:%s", self.game_id, host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: WebSocketServerProtocol) -> None:
        # First message must be "hello" carrying the player's display name.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return
        name_raw = hello.get("name")
        if not isinstance(name_raw, str) or not name_raw.strip():
            await self._send_error(websocket, code="NAME_REQUIRED", msg="name required")
            await websocket.close()
            return
        if self.client is not None:
            await self._send_error(websocket, code="TABLE_FULL", msg="This table already has a player")
            await websocket.close()
            return

        try:
            client = self._seat_client(name_raw, websocket)
        except GameError as exc:
            await self._send_error(websocket, code=exc.code, msg=exc.msg)
            await websocket.close()
            return
        LOGGER.info("Player %s joined table %s", client.name, self.game_id)

        await self._send_json(
            websocket,
            "welcome",
            {
                "game_id": self.game_id,
                "player_id": client.player_id,
                "invite": invite_link(self.base_url, self.game_id),
                "config": {
                    "max_players": self.engine.config.max_players,
                    "starting_chips": self.engine.config.starting_chips,
                    "initial_stake": self.engine.config.initial_stake,
                    "boot": self.engine.config.boot,
                    "move_time_ms": self.engine.config.move_time_ms,
                },
            },
        )
        await self._send_json(websocket, "lobby", self.engine.lobby_state())

        try:
            async for raw in websocket:
                message = self._decode(raw)
                msg_type = message.get("type")
                if msg_type == "start":
                    await self._handle_start(client)
                elif msg_type == "action":
                    await self._handle_action(client, message)
                else:
                    await self._send_error(websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")
        except websockets.ConnectionClosed:
            pass
        finally:
            await self._teardown()
            LOGGER.info("Player %s left table %s", client.name, self.game_id)

    def _seat_client(self, name: str, websocket: WebSocketServerProtocol) -> ClientSession:
        player = self.engine.join(name)
        agent = BrowserSeat(player.id, websocket, self)
        agents: Dict[str, PlayerAgent] = {player.id: agent}
        rng = random.Random(self.seed)
        for _ in range(self.bots):
            bot = self.engine.join(self._bot_name())
            agents[bot.id] = BotAgent(bot.id, self.strategy, random.Random(rng.random()))
        self.client = ClientSession(player_id=player.id, name=player.name, websocket=websocket, agent=agent)
        self.session = TableSession(self.engine, agents)
        self.session.subscribe(self._forward)
        return self.client

    def _bot_name(self) -> str:
        taken = {player.name.casefold() for player in self.engine.players}
        number = 1
        while f"ai player {number}" in taken:
            number += 1
        return f"AI Player {number}"

    async def _handle_start(self, client: ClientSession) -> None:
        if self.session is None:
            return
        if self.session_task is not None and not self.session_task.done():
            await self._send_error(client.websocket, code="ROUND_IN_PROGRESS", msg="Game already running")
            return
        if not self.engine.can_start_round():
            await self._send_error(client.websocket, code="NOT_ENOUGH_PLAYERS", msg="Need at least 2 players to start")
            return
        self.session_task = asyncio.create_task(self._run_session())

    async def _run_session(self) -> None:
        assert self.session is not None
        try:
            await self.session.run(seed=self.seed)
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Table %s session crashed", self.game_id)

    async def _handle_action(self, client: ClientSession, message: Dict[str, object]) -> None:
        try:
            action = self._parse_action(message)
        except LobbyError as exc:
            await self._send_error(client.websocket, code=exc.code, msg=exc.msg)
            return
        if self.session is None or self.engine.state is None:
            await self._send_error(client.websocket, code="NO_ROUND", msg="No round in progress")
            return

        # Looking at cards never waits for the turn.
        if action.type == ActionType.SEE:
            try:
                await self.session.submit(client.player_id, action)
            except GameError as exc:
                await self._send_error(client.websocket, code=exc.code, msg=exc.msg)
            return

        state = self.engine.state
        stamp = (state.round_id, state.turn)
        if message.get("round_id", state.round_id) != state.round_id or message.get("turn", state.turn) != state.turn:
            await self._send_error(client.websocket, code="ACTION_TOO_LATE", msg="Action was sent for an earlier turn")
            return
        if self.engine.next_actor() != client.player_id:
            await self._send_error(client.websocket, code="OUT_OF_TURN", msg="Not your turn")
            return
        if client.agent.has_pending or client.agent.claimed == stamp:
            await self._send_error(client.websocket, code="OUT_OF_TURN", msg="Action already submitted for this turn")
            return
        client.agent.claimed = stamp
        client.agent.submit(action)

    def _parse_action(self, message: Dict[str, object]) -> Action:
        try:
            action_type = ActionType(message.get("action"))
        except ValueError:
            raise LobbyError("Unknown action", code="INVALID_ACTION") from None
        amount = message.get("amount")
        if action_type == ActionType.BET and (isinstance(amount, bool) or not isinstance(amount, int)):
            raise LobbyError("amount required for bet", code="BAD_SCHEMA")
        return Action(action_type, amount if action_type == ActionType.BET else None)

    async def _forward(self, msg_type: str, payload: Dict[str, object]) -> None:
        if self.client is None:
            return
        if msg_type == "state":
            if self.engine.state is None:
                return
            await self._send_json(self.client.websocket, "snapshot", self.engine.snapshot_payload(self.client.player_id))
            return
        await self._send_json(self.client.websocket, msg_type, payload)

    async def _teardown(self) -> None:
        task = self.session_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.client = None
        self.session = None
        self.session_task = None
        self.engine = GameEngine(self.engine.config)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self.background.add(task)
        task.add_done_callback(self.background.discard)

    async def _send_json(self, websocket: WebSocketServerProtocol, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: WebSocketServerProtocol, code: str, msg: str) -> None:
        await self._send_json(websocket, "error", {"code": code, "msg": msg})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: WebSocketServerProtocol) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None
        return self._decode(raw)

    def _decode(self, raw: str) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return message if isinstance(message, dict) else {}
