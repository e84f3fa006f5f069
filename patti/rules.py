from __future__ import annotations

import random
import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import build_deck, cards_to_labels, deal, shuffle
from .evaluator import compare_hands, describe_hand, evaluate_hand
from .models import (
    Action,
    ActionType,
    ActionWindow,
    IllegalActionError,
    LobbyError,
    OutOfTurnError,
    Phase,
    Player,
    Resolution,
    RoundState,
    SideshowRequest,
    TableConfig,
)

# Pure round transitions. Every function takes a RoundState and returns a new
# one; nothing here mutates its input or keeps a reference to "the" round.


def create_player(name: str, chips: int = 1_000, player_id: Optional[str] = None) -> Player:
    display = name.strip()
    if not display:
        raise LobbyError("Player name required", code="NAME_REQUIRED")
    if chips < 0:
        raise ValueError("Chips cannot be negative")
    return Player(id=player_id or str(uuid.uuid4()), name=display, chips=chips)


def generate_game_id() -> str:
    return uuid.uuid4().hex[:8]


def invite_link(base_url: str, game_id: str) -> str:
    return f"{base_url.rstrip('/')}/join/{game_id}"


# Round setup -------------------------------------------------------

def initialize_round(
    players: Sequence[Player],
    config: Optional[TableConfig] = None,
    rng: Optional[random.Random] = None,
    dealer_index: Optional[int] = None,
    round_id: Optional[str] = None,
) -> RoundState:
    config = config or TableConfig()
    rng = rng or random.Random()
    if len(players) < config.min_players:
        raise LobbyError(
            f"Need at least {config.min_players} players to start a round", code="NOT_ENOUGH_PLAYERS"
        )
    for player in players:
        if player.chips < config.boot:
            raise LobbyError(f"{player.name} cannot cover the boot of {config.boot}", code="INSUFFICIENT_CHIPS")

    # Dealing fails before any chips move.
    deck = shuffle(build_deck(), rng)
    hands, remaining = deal(deck, len(players), config.cards_per_player)

    if dealer_index is None:
        dealer_index = rng.randrange(len(players))
    dealer_index %= len(players)

    seated = []
    for player, hand in zip(players, hands):
        fresh = player.reset_for_round(tuple(hand))
        if config.boot:
            fresh = replace(fresh, chips=fresh.chips - config.boot, current_bet=config.boot)
        seated.append(fresh)

    state = RoundState(
        round_id=round_id or generate_game_id(),
        players=tuple(seated),
        dealer_index=dealer_index,
        current_player_index=(dealer_index + 1) % len(players),
        pot=config.boot * len(players),
        current_stake=config.initial_stake,
        remaining_deck=tuple(remaining),
        phase=Phase.DEALING,
    )
    return replace(state, phase=Phase.BETTING)


def next_round(
    state: RoundState,
    config: Optional[TableConfig] = None,
    rng: Optional[random.Random] = None,
    round_id: Optional[str] = None,
    roster: Optional[Sequence[Player]] = None,
) -> RoundState:
    """Deal a fresh round to everyone who can still pay, rotating the dealer clockwise.

    ``roster`` replaces the seating (e.g. after lobby joins); it defaults to the
    settled round's players with their carried-forward chips.
    """
    config = config or TableConfig()
    if not state.ended:
        raise LobbyError("Current round is still in progress", code="ROUND_IN_PROGRESS")
    if state.phase != Phase.SETTLED:
        state = settle(state)

    seats = list(roster) if roster is not None else list(state.players)
    eligible = [player for player in seats if player.chips > 0 and player.chips >= config.boot]
    eligible_ids = [player.id for player in eligible]

    previous_dealer = state.players[state.dealer_index].id
    seat_ids = [player.id for player in seats]
    start = seat_ids.index(previous_dealer) if previous_dealer in seat_ids else -1
    dealer_index = 0
    for step in range(1, len(seats) + 1):
        candidate = seats[(start + step) % len(seats)]
        if candidate.id in eligible_ids:
            dealer_index = eligible_ids.index(candidate.id)
            break

    return initialize_round(eligible, config, rng, dealer_index=dealer_index, round_id=round_id)


# Turn order --------------------------------------------------------

def next_active_index(players: Sequence[Player], index: int) -> int:
    count = len(players)
    for step in range(1, count + 1):
        idx = (index + step) % count
        if players[idx].active:
            return idx
    raise RuntimeError("No active players left in the round")


def previous_active_index(players: Sequence[Player], index: int) -> int:
    count = len(players)
    for step in range(1, count + 1):
        idx = (index - step) % count
        if players[idx].active:
            return idx
    raise RuntimeError("No active players left in the round")


def acting_player_id(state: RoundState) -> Optional[str]:
    if state.ended:
        return None
    if state.pending_sideshow is not None:
        return state.pending_sideshow.target_id
    return state.current_player.id


# Stakes ------------------------------------------------------------

def bet_limits(stake: int, seen: bool) -> Tuple[int, int]:
    if seen:
        return stake * 2, stake * 4
    return stake, stake * 2


def next_stake(amount: int, seen: bool) -> int:
    if seen:
        return max(amount // 2, 1)
    return amount


def show_cost(stake: int, seen: bool) -> int:
    return stake * 2 if seen else stake


def can_show(state: RoundState) -> bool:
    return not state.ended and len(state.active_players) == 2


def can_request_sideshow(state: RoundState, player_id: str) -> bool:
    if state.ended or state.pending_sideshow is not None:
        return False
    if len(state.active_players) <= 2:
        return False
    idx = state.index_of(player_id)
    player = state.players[idx]
    if not player.active or not player.seen:
        return False
    if state.sideshow_declined and idx == state.current_player_index:
        return False
    previous = state.players[previous_active_index(state.players, idx)]
    return previous.seen


def legal_actions(state: RoundState, player_id: str) -> ActionWindow:
    idx = state.index_of(player_id)
    player = state.players[idx]
    if state.ended or not player.active:
        return ActionWindow(legal=[])

    legal: List[ActionType] = []
    if not player.seen:
        legal.append(ActionType.SEE)

    if state.pending_sideshow is not None:
        if state.pending_sideshow.target_id == player_id:
            legal.extend([ActionType.ACCEPT_SIDESHOW, ActionType.DECLINE_SIDESHOW])
        return ActionWindow(legal=legal)
    if idx != state.current_player_index:
        return ActionWindow(legal=legal)

    legal.append(ActionType.FOLD)
    min_bet, max_bet = bet_limits(state.current_stake, player.seen)
    window = ActionWindow(legal=legal)
    if player.chips >= min_bet:
        legal.append(ActionType.BET)
        window.min_bet = min_bet
        window.max_bet = min(max_bet, player.chips)
    if can_show(state):
        cost = show_cost(state.current_stake, player.seen)
        if player.chips >= cost:
            legal.append(ActionType.SHOW)
            window.show_cost = cost
    if can_request_sideshow(state, player_id):
        legal.append(ActionType.SIDESHOW)
    return window


# Transitions -------------------------------------------------------

def see_cards(state: RoundState, player_id: str) -> RoundState:
    _require_open(state)
    idx = state.index_of(player_id)
    player = state.players[idx]
    if not player.active:
        raise IllegalActionError("Folded players cannot look at cards", code="PLAYER_INACTIVE")
    if player.seen:
        return state
    return replace(state, players=_swap(state.players, idx, replace(player, seen=True)))


def place_bet(state: RoundState, player_id: str, amount: int) -> RoundState:
    idx = _require_turn(state, player_id)
    player = state.players[idx]
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise IllegalActionError("Bet amount must be an integer", code="BET_OUT_OF_RANGE")
    min_bet, max_bet = bet_limits(state.current_stake, player.seen)
    if amount < min_bet or amount > max_bet:
        raise IllegalActionError(
            f"Bet {amount} outside allowed range [{min_bet}, {max_bet}]", code="BET_OUT_OF_RANGE"
        )
    if amount > player.chips:
        raise IllegalActionError(f"Bet {amount} exceeds chips {player.chips}", code="INSUFFICIENT_CHIPS")

    updated = replace(player, chips=player.chips - amount, current_bet=player.current_bet + amount)
    players = _swap(state.players, idx, updated)
    return replace(
        state,
        players=players,
        pot=state.pot + amount,
        current_stake=next_stake(amount, player.seen),
        current_player_index=next_active_index(players, idx),
        sideshow_declined=False,
        turn=state.turn + 1,
    )


def fold(state: RoundState, player_id: str) -> RoundState:
    idx = _require_turn(state, player_id)
    players = _swap(state.players, idx, replace(state.players[idx], active=False))
    remaining = [i for i, player in enumerate(players) if player.active]
    if not remaining:
        raise RuntimeError("Fold left the round without active players")
    if len(remaining) == 1:
        return _conclude(
            replace(state, players=players, current_player_index=remaining[0], turn=state.turn + 1),
            remaining[0],
            Phase.SINGLE_WINNER,
        )
    return replace(
        state,
        players=players,
        current_player_index=next_active_index(players, idx),
        sideshow_declined=False,
        turn=state.turn + 1,
    )


def show(state: RoundState, player_id: str) -> RoundState:
    idx = _require_turn(state, player_id)
    if not can_show(state):
        raise IllegalActionError("Show needs exactly two active players", code="SHOW_NOT_ALLOWED")
    player = state.players[idx]
    cost = show_cost(state.current_stake, player.seen)
    if cost > player.chips:
        raise IllegalActionError(f"Show costs {cost}, only {player.chips} chips left", code="INSUFFICIENT_CHIPS")

    paid = replace(player, chips=player.chips - cost, current_bet=player.current_bet + cost, seen=True)
    players = _swap(state.players, idx, paid)
    opponent_idx = next_active_index(players, idx)
    outcome = compare_hands(evaluate_hand(players[idx].hand), evaluate_hand(players[opponent_idx].hand))
    # Ties go to the player who was asked to show.
    winner_idx, loser_idx = (idx, opponent_idx) if outcome > 0 else (opponent_idx, idx)
    resolution = Resolution(
        kind="show",
        initiator_id=player_id,
        opponent_id=players[opponent_idx].id,
        winner_id=players[winner_idx].id,
        loser_id=players[loser_idx].id,
        tied=outcome == 0,
    )
    concluded = replace(
        state,
        players=players,
        pot=state.pot + cost,
        showdown_occurred=True,
        last_resolution=resolution,
        revealed=(player_id, players[opponent_idx].id),
        turn=state.turn + 1,
    )
    return _conclude(concluded, winner_idx, Phase.SHOWDOWN)


def request_sideshow(state: RoundState, player_id: str) -> RoundState:
    idx = _require_turn(state, player_id)
    if not can_request_sideshow(state, player_id):
        raise IllegalActionError(
            "Sideshow needs more than two active players and both you and the previous player seen",
            code="SIDESHOW_NOT_ALLOWED",
        )
    target = state.players[previous_active_index(state.players, idx)]
    return replace(
        state,
        pending_sideshow=SideshowRequest(requester_id=player_id, target_id=target.id),
        turn=state.turn + 1,
    )


def respond_sideshow(state: RoundState, player_id: str, accept: bool) -> RoundState:
    _require_open(state)
    request = state.pending_sideshow
    if request is None:
        raise IllegalActionError("No sideshow awaiting a response", code="NO_PENDING_SIDESHOW")
    if request.target_id != player_id:
        raise OutOfTurnError(f"Sideshow response expected from {request.target_id}")

    if not accept:
        return replace(state, pending_sideshow=None, sideshow_declined=True, turn=state.turn + 1)

    requester_idx = state.index_of(request.requester_id)
    target_idx = state.index_of(request.target_id)
    outcome = compare_hands(
        evaluate_hand(state.players[requester_idx].hand),
        evaluate_hand(state.players[target_idx].hand),
    )
    # The requester loses a tied sideshow.
    winner_idx, loser_idx = (requester_idx, target_idx) if outcome > 0 else (target_idx, requester_idx)
    players = _swap(state.players, loser_idx, replace(state.players[loser_idx], active=False))
    resolution = Resolution(
        kind="sideshow",
        initiator_id=request.requester_id,
        opponent_id=request.target_id,
        winner_id=players[winner_idx].id,
        loser_id=players[loser_idx].id,
        tied=outcome == 0,
    )
    return replace(
        state,
        players=players,
        pending_sideshow=None,
        sideshow_declined=False,
        last_resolution=resolution,
        current_player_index=next_active_index(players, requester_idx),
        turn=state.turn + 1,
    )


def settle(state: RoundState) -> RoundState:
    """Credit the pot to the winner of an ended round."""
    if not state.ended or state.winner_id is None:
        raise RuntimeError("Only an ended round with a winner can be settled")
    if state.phase == Phase.SETTLED:
        return state
    idx = state.index_of(state.winner_id)
    winner = state.players[idx]
    return replace(
        state,
        players=_swap(state.players, idx, replace(winner, chips=winner.chips + state.pot)),
        pot_awarded=state.pot,
        pot=0,
        phase=Phase.SETTLED,
    )


def apply_action(state: RoundState, player_id: str, action: Action) -> RoundState:
    if action.type == ActionType.SEE:
        return see_cards(state, player_id)
    if action.type == ActionType.BET:
        if action.amount is None:
            raise IllegalActionError("Bet requires an amount", code="BET_OUT_OF_RANGE")
        return place_bet(state, player_id, action.amount)
    if action.type == ActionType.FOLD:
        return fold(state, player_id)
    if action.type == ActionType.SHOW:
        return show(state, player_id)
    if action.type == ActionType.SIDESHOW:
        return request_sideshow(state, player_id)
    if action.type == ActionType.ACCEPT_SIDESHOW:
        return respond_sideshow(state, player_id, accept=True)
    if action.type == ActionType.DECLINE_SIDESHOW:
        return respond_sideshow(state, player_id, accept=False)
    raise IllegalActionError(f"Unsupported action {action.type}")


# Views -------------------------------------------------------------

def view_for(state: RoundState, viewer_id: Optional[str] = None) -> Dict[str, object]:
    """JSON-ready snapshot; hole cards appear only where the viewer may see them."""
    acting = acting_player_id(state)
    players = []
    for idx, player in enumerate(state.players):
        visible = (player.id == viewer_id and player.seen) or player.id in state.revealed
        entry: Dict[str, object] = {
            "id": player.id,
            "name": player.name,
            "chips": player.chips,
            "current_bet": player.current_bet,
            "seen": player.seen,
            "active": player.active,
            "is_dealer": idx == state.dealer_index,
            "cards": cards_to_labels(player.hand) if visible else ["??"] * len(player.hand),
        }
        if visible and player.hand:
            entry["hand_name"] = describe_hand(evaluate_hand(player.hand))
        players.append(entry)

    payload: Dict[str, object] = {
        "round_id": state.round_id,
        "turn": state.turn,
        "phase": state.phase.value,
        "pot": state.pot,
        "current_stake": state.current_stake,
        "players": players,
        "current_player": acting,
        "ended": state.ended,
        "winner": state.winner_id,
        "showdown": state.showdown_occurred,
        "pot_awarded": state.pot_awarded,
    }
    if state.pending_sideshow is not None:
        payload["sideshow"] = {
            "requester": state.pending_sideshow.requester_id,
            "target": state.pending_sideshow.target_id,
        }
    if viewer_id is not None and acting == viewer_id:
        window = legal_actions(state, viewer_id)
        payload["legal"] = [action.value for action in window.legal]
        payload["min_bet"] = window.min_bet
        payload["max_bet"] = window.max_bet
        payload["show_cost"] = window.show_cost
    return payload


# Helpers -----------------------------------------------------------

def _swap(players: Tuple[Player, ...], idx: int, player: Player) -> Tuple[Player, ...]:
    return players[:idx] + (player,) + players[idx + 1 :]


def _require_open(state: RoundState) -> None:
    if state.ended:
        raise IllegalActionError("Round has already ended", code="ROUND_ENDED")


def _require_turn(state: RoundState, player_id: str) -> int:
    _require_open(state)
    idx = state.index_of(player_id)
    if state.pending_sideshow is not None:
        if player_id == state.pending_sideshow.target_id:
            raise IllegalActionError("Respond to the sideshow request first", code="SIDESHOW_PENDING")
        raise OutOfTurnError(f"Waiting on sideshow response from {state.pending_sideshow.target_id}")
    if idx != state.current_player_index:
        raise OutOfTurnError(f"Not {player_id}'s turn")
    if not state.players[idx].active:
        raise RuntimeError("Turn pointer sits on a folded player")
    return idx


def _conclude(state: RoundState, winner_idx: int, phase: Phase) -> RoundState:
    return replace(
        state,
        ended=True,
        winner_id=state.players[winner_idx].id,
        phase=phase,
        pending_sideshow=None,
        sideshow_declined=False,
    )
