from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .cards import Card


class GameError(Exception):
    """Base for every rejection raised by the rules engine."""

    code = "GAME_ERROR"

    def __init__(self, msg: str, code: Optional[str] = None) -> None:
        super().__init__(msg)
        self.msg = msg
        if code is not None:
            self.code = code


class IllegalActionError(GameError, ValueError):
    code = "INVALID_ACTION"


class OutOfTurnError(GameError):
    code = "OUT_OF_TURN"


class InsufficientCardsError(GameError, ValueError):
    code = "INSUFFICIENT_CARDS"


class LobbyError(GameError):
    code = "LOBBY_ERROR"


class Phase(str, Enum):
    DEALING = "DEALING"
    BETTING = "BETTING"
    SHOWDOWN = "SHOWDOWN"
    SINGLE_WINNER = "SINGLE_WINNER"
    SETTLED = "SETTLED"


class ActionType(str, Enum):
    SEE = "SEE"
    BET = "BET"
    FOLD = "FOLD"
    SHOW = "SHOW"
    SIDESHOW = "SIDESHOW"
    ACCEPT_SIDESHOW = "ACCEPT_SIDESHOW"
    DECLINE_SIDESHOW = "DECLINE_SIDESHOW"


@dataclass
class TableConfig:
    max_players: int = 6
    min_players: int = 2
    starting_chips: int = 1_000
    initial_stake: int = 10
    boot: int = 0
    cards_per_player: int = 3
    move_time_ms: int = 30_000
    bot_delay_ms: int = 1_000


@dataclass(frozen=True)
class Action:
    type: ActionType
    amount: Optional[int] = None

    @classmethod
    def see(cls) -> "Action":
        return cls(ActionType.SEE)

    @classmethod
    def bet(cls, amount: int) -> "Action":
        return cls(ActionType.BET, amount)

    @classmethod
    def fold(cls) -> "Action":
        return cls(ActionType.FOLD)

    @classmethod
    def show(cls) -> "Action":
        return cls(ActionType.SHOW)

    @classmethod
    def sideshow(cls) -> "Action":
        return cls(ActionType.SIDESHOW)

    @classmethod
    def respond(cls, accept: bool) -> "Action":
        return cls(ActionType.ACCEPT_SIDESHOW if accept else ActionType.DECLINE_SIDESHOW)


@dataclass
class ActionWindow:
    legal: List[ActionType]
    min_bet: Optional[int] = None
    max_bet: Optional[int] = None
    show_cost: Optional[int] = None


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    chips: int
    hand: Tuple["Card", ...] = ()
    seen: bool = False
    active: bool = True
    current_bet: int = 0

    def reset_for_round(self, hand: Tuple["Card", ...]) -> "Player":
        return replace(self, hand=hand, seen=False, active=True, current_bet=0)


@dataclass(frozen=True)
class SideshowRequest:
    requester_id: str
    target_id: str


@dataclass(frozen=True)
class Resolution:
    """Outcome of a show or an accepted sideshow."""

    kind: str
    initiator_id: str
    opponent_id: str
    winner_id: str
    loser_id: str
    tied: bool = False


@dataclass(frozen=True)
class RoundState:
    round_id: str
    players: Tuple[Player, ...]
    dealer_index: int
    current_player_index: int
    pot: int
    current_stake: int
    remaining_deck: Tuple["Card", ...] = ()
    phase: Phase = Phase.BETTING
    ended: bool = False
    winner_id: Optional[str] = None
    showdown_occurred: bool = False
    pending_sideshow: Optional[SideshowRequest] = None
    sideshow_declined: bool = False
    last_resolution: Optional[Resolution] = None
    revealed: Tuple[str, ...] = field(default=())
    pot_awarded: int = 0
    turn: int = 0

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def active_players(self) -> Tuple[Player, ...]:
        return tuple(player for player in self.players if player.active)

    @property
    def winner(self) -> Optional[Player]:
        if self.winner_id is None:
            return None
        return self.player(self.winner_id)

    def index_of(self, player_id: str) -> int:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        raise IllegalActionError(f"Unknown player {player_id}", code="UNKNOWN_PLAYER")

    def player(self, player_id: str) -> Player:
        return self.players[self.index_of(player_id)]
