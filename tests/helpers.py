from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from patti.cards import Card, parse_cards
from patti.game import GameEngine
from patti.models import Action, RoundState, TableConfig
from patti.rules import create_player, initialize_round


def cards(labels: str) -> List[Card]:
    """Parse a space separated list of labels, e.g. ``"Ah 10d 3c"``."""
    return parse_cards(labels.split())


def create_engine(
    *,
    players: int = 4,
    starting_chips: int = 1_000,
    initial_stake: int = 10,
    boot: int = 0,
    max_players: int = 6,
) -> GameEngine:
    """Instantiate an engine with a populated lobby."""
    engine = GameEngine(
        TableConfig(
            max_players=max_players,
            starting_chips=starting_chips,
            initial_stake=initial_stake,
            boot=boot,
        )
    )
    for idx in range(players):
        engine.join(f"Player{idx}", player_id=f"p{idx}")
    return engine


def start_round(engine: GameEngine, seed: int = 42) -> RoundState:
    state = engine.start_round(seed=seed)
    assert state is not None
    return state


def make_round(
    hands: Sequence[str],
    *,
    seen: Optional[Sequence[bool]] = None,
    chips: int = 1_000,
    stake: int = 10,
    current: int = 0,
) -> RoundState:
    """Round with fixed hands for players p0..pN, p0 (by default) to act."""
    players = [create_player(f"Player{idx}", chips, player_id=f"p{idx}") for idx in range(len(hands))]
    state = initialize_round(players, TableConfig(initial_stake=stake), dealer_index=len(hands) - 1)
    return force_hands(state, hands, seen=seen, current=current)


def force_hands(
    state: RoundState,
    hands: Sequence[str],
    *,
    seen: Optional[Sequence[bool]] = None,
    current: Optional[int] = None,
) -> RoundState:
    seen = seen or [False] * len(hands)
    players = tuple(
        replace(player, hand=tuple(cards(hand)), seen=flag)
        for player, hand, flag in zip(state.players, hands, seen)
    )
    if current is None:
        return replace(state, players=players)
    return replace(state, players=players, current_player_index=current)


def engine_with_round(engine: GameEngine, state: RoundState) -> GameEngine:
    engine.state = state
    return engine


def perform_actions(engine: GameEngine, actions: Iterable[Tuple[str, Action]]) -> None:
    """Apply a scripted sequence of (player id, action)."""
    for player_id, action in actions:
        engine.apply_action(player_id, action)


def auto_complete_round(engine: GameEngine) -> None:
    """Everyone folds in turn until the round settles."""
    while not engine.is_round_complete():
        actor = engine.next_actor()
        if actor is None:
            break
        engine.apply_action(actor, Action.fold())
