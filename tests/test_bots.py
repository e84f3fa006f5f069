import random

from patti import rules
from patti.models import Action, ActionType
from practice.bots import WeightedRandomStrategy, always_fold_strategy, baseline_strategy

from .helpers import make_round


def test_bot_only_returns_legal_actions():
    rng = random.Random(4)
    for seed in range(200):
        state = make_round(["2h 5d 9c", "3h 6d 10c", "4h 7d Jc"], seen=[seed % 2 == 0, True, True])
        action = baseline_strategy(state, "p0", rng)
        window = rules.legal_actions(state, "p0")
        assert action.type in window.legal
        if action.type == ActionType.BET:
            assert window.min_bet <= action.amount <= window.max_bet


def test_bot_answers_pending_sideshow():
    state = make_round(["Ah Ad Ac", "2h 5d 9c", "Kh Kd 3c", "4s 8s Qd"], seen=[True, False, True, True], current=3)
    state = rules.request_sideshow(state, "p3")
    action = baseline_strategy(state, "p2", random.Random(1))
    assert action.type in (ActionType.ACCEPT_SIDESHOW, ActionType.DECLINE_SIDESHOW)


def test_weights_can_force_a_single_choice():
    shows_only = WeightedRandomStrategy(see_probability=0.0, fold_weight=0.0, bet_weight=0.0, show_weight=1.0)
    state = make_round(["Ah Ad Ac", "Kh Qd 2c"], seen=[True, False])
    assert shows_only(state, "p0", random.Random(2)) == Action.show()


def test_always_fold_strategy():
    state = make_round(["Ah Ad Ac", "Kh Qd 2c"])
    assert always_fold_strategy(state, "p0", random.Random()) == Action.fold()
