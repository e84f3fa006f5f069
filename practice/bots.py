from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict

from patti.evaluator import HandCategory, evaluate_hand
from patti.models import Action, ActionType, RoundState
from patti.rules import legal_actions


def _rough_hand_strength(state: RoundState, player_id: str) -> float:
    """0..1 proxy for hand quality; unseen hands count as average."""
    player = state.player(player_id)
    if not player.seen or len(player.hand) != 3:
        return 0.5
    hand = evaluate_hand(player.hand)
    base = (int(hand.category) - 1) / 5
    top = hand.tiebreak()[0]
    return min(1.0, base + (top - 2) / 60)


@dataclass
class WeightedRandomStrategy:
    """Demo opponent: weighted-random pick among legal actions, leaning on hand strength."""

    see_probability: float = 0.5
    fold_weight: float = 0.2
    bet_weight: float = 0.6
    show_weight: float = 0.2
    sideshow_weight: float = 0.15
    accept_sideshow_probability: float = 0.7

    def __call__(self, state: RoundState, player_id: str, rng: random.Random) -> Action:
        window = legal_actions(state, player_id)
        legal = window.legal
        if not legal:
            raise ValueError(f"No legal actions for {player_id}")

        if ActionType.ACCEPT_SIDESHOW in legal:
            strength = _rough_hand_strength(state, player_id)
            accept = rng.random() < self.accept_sideshow_probability * (0.5 + strength)
            return Action.respond(accept)

        if ActionType.SEE in legal and (legal == [ActionType.SEE] or rng.random() < self.see_probability):
            return Action.see()

        strength = _rough_hand_strength(state, player_id)
        weights: Dict[ActionType, float] = {
            ActionType.FOLD: self.fold_weight * (1.5 - strength),
            ActionType.BET: self.bet_weight,
            ActionType.SHOW: self.show_weight * (0.5 + strength),
            ActionType.SIDESHOW: self.sideshow_weight,
        }
        choices = [action for action in legal if action in weights]
        picked = rng.choices(choices, weights=[weights[action] for action in choices])[0]

        if picked == ActionType.BET:
            assert window.min_bet is not None and window.max_bet is not None
            return Action.bet(_choose_bet_amount(window.min_bet, window.max_bet, strength, rng))
        return Action(picked)


def _choose_bet_amount(min_bet: int, max_bet: int, strength: float, rng: random.Random) -> int:
    if max_bet <= min_bet:
        return min_bet
    roll = rng.random()
    # Strong hands lean toward the top of the range.
    if roll < 0.4 * (1 - strength):
        return min_bet
    if roll > 1 - 0.3 * strength:
        return max_bet
    return rng.randint(min_bet, max_bet)


baseline_strategy = WeightedRandomStrategy()


def always_fold_strategy(state: RoundState, player_id: str, rng: random.Random) -> Action:
    window = legal_actions(state, player_id)
    if ActionType.DECLINE_SIDESHOW in window.legal:
        return Action.respond(False)
    return Action.fold()
