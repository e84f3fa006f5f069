"""Teen Patti rules engine: cards, hand ranking and the betting state machine."""

from .agents import BotAgent, HumanAgent, PlayerAgent, ScriptedAgent
from .cards import Card, RANKS, SUITS, build_deck, deal, parse_cards, shuffle
from .evaluator import HandCategory, compare_hands, describe_hand, evaluate_hand, hand_strength
from .game import GameEngine
from .models import (
    Action,
    ActionType,
    GameError,
    IllegalActionError,
    InsufficientCardsError,
    LobbyError,
    OutOfTurnError,
    Phase,
    Player,
    RoundState,
    TableConfig,
)
from .rules import create_player, initialize_round, view_for

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "build_deck",
    "deal",
    "parse_cards",
    "shuffle",
    "HandCategory",
    "compare_hands",
    "describe_hand",
    "evaluate_hand",
    "hand_strength",
    "GameEngine",
    "BotAgent",
    "HumanAgent",
    "PlayerAgent",
    "ScriptedAgent",
    "Action",
    "ActionType",
    "GameError",
    "IllegalActionError",
    "InsufficientCardsError",
    "LobbyError",
    "OutOfTurnError",
    "Phase",
    "Player",
    "RoundState",
    "TableConfig",
    "create_player",
    "initialize_round",
    "view_for",
]
