from __future__ import annotations

import random
import time
from typing import Dict, List, Optional

from . import rules
from .cards import cards_to_labels
from .evaluator import describe_hand, evaluate_hand
from .models import Action, ActionType, ActionWindow, LobbyError, Phase, Player, RoundState, TableConfig

# GameEngine is the single writer for one table. It owns the lobby and the
# current RoundState snapshot, swapping in a new snapshot on every action.
# No networking or pacing lives here.


class GameEngine:
    """Teen Patti table: lobby seating plus the round state machine."""

    def __init__(self, config: Optional[TableConfig] = None) -> None:
        self.config = config or TableConfig()
        self.players: List[Player] = []
        self.round_counter = 0
        self.state: Optional[RoundState] = None
        self.seed: Optional[int] = None

    # Lobby -----------------------------------------------------------

    def join(self, name: str, player_id: Optional[str] = None) -> Player:
        if self.state is not None and not self.state.ended:
            raise LobbyError("Cannot join while a round is in progress", code="ROUND_IN_PROGRESS")
        key = name.strip().casefold()
        for existing in self.players:
            if existing.name.casefold() == key and key:
                return existing
        if len(self.players) >= self.config.max_players:
            raise LobbyError("Table is full", code="TABLE_FULL")
        player = rules.create_player(name, self.config.starting_chips, player_id=player_id)
        self.players.append(player)
        return player

    def leave(self, player_id: str) -> None:
        if self.state is not None and not self.state.ended:
            raise LobbyError("Cannot leave while a round is in progress", code="ROUND_IN_PROGRESS")
        self.players = [player for player in self.players if player.id != player_id]

    def seating_order(self) -> List[Player]:
        return [player for player in self.players if player.chips > 0 and player.chips >= self.config.boot]

    def can_start_round(self) -> bool:
        if self.state is not None and not self.state.ended:
            return False
        return len(self.seating_order()) >= self.config.min_players

    # Round lifecycle -------------------------------------------------

    def start_round(self, seed: Optional[int] = None) -> RoundState:
        if self.state is not None and not self.state.ended:
            raise LobbyError("Round already in progress", code="ROUND_IN_PROGRESS")
        if seed is None:
            seed = int(time.time() * 1000) & 0xFFFFFFFF
        rng = random.Random(seed)

        round_id = f"R-{time.strftime('%Y%m%d')}-{self.round_counter:05d}"
        if self.state is None:
            state = rules.initialize_round(self.seating_order(), self.config, rng, round_id=round_id)
        else:
            state = rules.next_round(self.state, self.config, rng, round_id=round_id, roster=self.players)

        self.round_counter += 1
        self.seed = seed
        self.state = state
        return state

    def apply_action(self, player_id: str, action: Action) -> List[Dict[str, object]]:
        """Validate and apply one action; on rejection the snapshot is unchanged."""
        if self.state is None:
            raise LobbyError("No round in progress", code="NO_ROUND")
        before = self.state
        after = rules.apply_action(before, player_id, action)

        events = self._describe(before, after, player_id, action)
        if after.ended and after.phase != Phase.SETTLED:
            after = rules.settle(after)
            assert after.winner_id is not None
            events.append({"ev": "POT_AWARD", "player": after.winner_id, "amount": after.pot_awarded})
            for player in after.players:
                if player.chips == 0:
                    events.append({"ev": "ELIMINATED", "player": player.id})
            self._sync_lobby(after)
        self.state = after
        return events

    def _describe(
        self, before: RoundState, after: RoundState, player_id: str, action: Action
    ) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        if action.type == ActionType.SEE:
            if before is not after:
                events.append({"ev": "SEE", "player": player_id})
        elif action.type == ActionType.BET:
            events.append({"ev": "BET", "player": player_id, "amount": action.amount, "stake": after.current_stake})
        elif action.type == ActionType.FOLD:
            events.append({"ev": "FOLD", "player": player_id})
        elif action.type == ActionType.SHOW:
            resolution = after.last_resolution
            assert resolution is not None
            events.append(
                {
                    "ev": "SHOW",
                    "player": player_id,
                    "amount": after.pot - before.pot,
                    "hands": {pid: self._hand_summary(after, pid) for pid in after.revealed},
                    "winner": resolution.winner_id,
                    "tied": resolution.tied,
                }
            )
        elif action.type == ActionType.SIDESHOW:
            assert after.pending_sideshow is not None
            events.append({"ev": "SIDESHOW", "player": player_id, "target": after.pending_sideshow.target_id})
        elif action.type == ActionType.ACCEPT_SIDESHOW:
            resolution = after.last_resolution
            assert resolution is not None
            events.append(
                {
                    "ev": "SIDESHOW_ACCEPTED",
                    "player": player_id,
                    "winner": resolution.winner_id,
                    "loser": resolution.loser_id,
                    "tied": resolution.tied,
                }
            )
        elif action.type == ActionType.DECLINE_SIDESHOW:
            events.append({"ev": "SIDESHOW_DECLINED", "player": player_id})
        return events

    def _hand_summary(self, state: RoundState, player_id: str) -> Dict[str, object]:
        player = state.player(player_id)
        return {"cards": cards_to_labels(player.hand), "rank": describe_hand(evaluate_hand(player.hand))}

    def _sync_lobby(self, state: RoundState) -> None:
        balances = {player.id: player.chips for player in state.players}
        self.players = [
            Player(id=player.id, name=player.name, chips=balances.get(player.id, player.chips))
            for player in self.players
        ]

    # Queries ---------------------------------------------------------

    def next_actor(self) -> Optional[str]:
        if self.state is None:
            return None
        return rules.acting_player_id(self.state)

    def legal_actions(self, player_id: str) -> ActionWindow:
        if self.state is None:
            raise LobbyError("No round in progress", code="NO_ROUND")
        return rules.legal_actions(self.state, player_id)

    def is_round_complete(self) -> bool:
        return bool(self.state and self.state.phase == Phase.SETTLED)

    def is_match_over(self) -> bool:
        return len(self.seating_order()) < self.config.min_players

    # Payloads --------------------------------------------------------

    def lobby_state(self) -> Dict[str, object]:
        return {
            "players": [
                {"id": player.id, "name": player.name, "chips": player.chips}
                for player in self.players
            ]
        }

    def start_round_payload(self) -> Dict[str, object]:
        if self.state is None:
            raise LobbyError("No round in progress", code="NO_ROUND")
        state = self.state
        return {
            "round_id": state.round_id,
            "seed": self.seed,
            "dealer": state.players[state.dealer_index].id,
            "stake": state.current_stake,
            "boot": self.config.boot,
            "chips": [
                {"player": player.id, "chips": player.chips + player.current_bet}
                for player in state.players
            ],
        }

    def snapshot_payload(self, viewer_id: Optional[str]) -> Dict[str, object]:
        if self.state is None:
            raise LobbyError("No round in progress", code="NO_ROUND")
        return rules.view_for(self.state, viewer_id)

    def end_round_payload(self) -> Dict[str, object]:
        if self.state is None:
            raise LobbyError("No round in progress", code="NO_ROUND")
        state = self.state
        return {
            "round_id": state.round_id,
            "winner": state.winner_id,
            "pot": state.pot_awarded,
            "showdown": state.showdown_occurred,
            "chips": [{"player": player.id, "chips": player.chips} for player in state.players],
        }

    def match_result_payload(self) -> Dict[str, object]:
        remaining = self.seating_order()
        winner = remaining[0] if len(remaining) == 1 else None
        return {
            "winner": {"id": winner.id, "name": winner.name} if winner else None,
            "final_chips": [
                {"id": player.id, "name": player.name, "chips": player.chips}
                for player in self.players
            ],
        }
