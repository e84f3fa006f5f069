import pytest

from patti.game import GameEngine
from patti.models import Action, LobbyError, OutOfTurnError, Phase, TableConfig

from .helpers import create_engine, engine_with_round, make_round, start_round


def test_start_round_seats_lobby_and_reports_payload():
    engine = create_engine(players=4)
    state = start_round(engine, seed=11)
    assert [player.id for player in state.players] == ["p0", "p1", "p2", "p3"]
    payload = engine.start_round_payload()
    assert payload["round_id"] == state.round_id
    assert payload["seed"] == 11
    assert payload["stake"] == 10
    assert payload["dealer"] == state.players[state.dealer_index].id
    assert engine.next_actor() == state.players[(state.dealer_index + 1) % 4].id


def test_round_ids_are_unique_per_round():
    engine = create_engine(players=2)
    first = start_round(engine, seed=1)
    engine.apply_action(engine.next_actor(), Action.fold())
    second = start_round(engine, seed=2)
    assert first.round_id != second.round_id


def test_bet_event_and_snapshot_replacement():
    engine = create_engine(players=3)
    before = start_round(engine, seed=5)
    actor = engine.next_actor()
    events = engine.apply_action(actor, Action.bet(10))
    assert events == [{"ev": "BET", "player": actor, "amount": 10, "stake": 10}]
    assert engine.state is not before
    assert before.pot == 0
    assert engine.state.pot == 10


def test_rejected_action_leaves_snapshot_untouched():
    engine = create_engine(players=3)
    before = start_round(engine, seed=6)
    actor = engine.next_actor()
    other = next(player.id for player in before.players if player.id != actor)
    with pytest.raises(OutOfTurnError):
        engine.apply_action(other, Action.bet(10))
    assert engine.state is before


def test_fold_to_one_awards_pot_and_settles():
    engine = engine_with_round(create_engine(players=4), make_round(["2h 5d 9c", "3h 6d 10c", "4h 7d Jc", "5h 8d Qc"]))
    engine.apply_action("p0", Action.bet(20))
    engine.apply_action("p1", Action.fold())
    engine.apply_action("p2", Action.fold())
    events = engine.apply_action("p3", Action.fold())
    assert {"ev": "POT_AWARD", "player": "p0", "amount": 20} in events
    assert engine.is_round_complete()
    assert engine.state.phase == Phase.SETTLED
    assert engine.state.winner.id == "p0"
    assert engine.next_actor() is None
    assert [player.chips for player in engine.players] == [1_000, 1_000, 1_000, 1_000]


def test_show_event_reveals_both_hands():
    engine = engine_with_round(create_engine(players=2), make_round(["Ah Ad Ac", "Kh Qd 2c"], seen=[True, False]))
    events = engine.apply_action("p0", Action.show())
    show = events[0]
    assert show["ev"] == "SHOW"
    assert show["amount"] == 20
    assert show["winner"] == "p0"
    assert show["hands"]["p0"] == {"cards": ["Ah", "Ad", "Ac"], "rank": "Trail"}
    assert show["hands"]["p1"]["rank"] == "High Card"
    assert engine.end_round_payload()["pot"] == 20
    chips = {player.id: player.chips for player in engine.players}
    assert chips == {"p0": 1_000, "p1": 1_000}


def test_sideshow_events():
    engine = engine_with_round(
        create_engine(players=4),
        make_round(["Ah Ad Ac", "2h 5d 9c", "Kh Kd 3c", "4s 8s Qd"], seen=[True, False, True, True], current=3),
    )
    events = engine.apply_action("p3", Action.sideshow())
    assert events == [{"ev": "SIDESHOW", "player": "p3", "target": "p2"}]
    events = engine.apply_action("p2", Action.respond(True))
    assert events == [{"ev": "SIDESHOW_ACCEPTED", "player": "p2", "winner": "p2", "loser": "p3", "tied": False}]


def test_see_event_only_on_first_look():
    engine = create_engine(players=3)
    start_round(engine, seed=8)
    assert engine.apply_action("p1", Action.see()) == [{"ev": "SEE", "player": "p1"}]
    assert engine.apply_action("p1", Action.see()) == []


def test_snapshot_hides_cards_until_seen_and_from_other_viewers():
    engine = create_engine(players=3)
    start_round(engine, seed=9)
    hidden = engine.snapshot_payload("p1")
    entry = next(p for p in hidden["players"] if p["id"] == "p1")
    assert entry["cards"] == ["??", "??", "??"]

    engine.apply_action("p1", Action.see())
    mine = next(p for p in engine.snapshot_payload("p1")["players"] if p["id"] == "p1")
    assert "??" not in mine["cards"]
    assert "hand_name" in mine
    theirs = next(p for p in engine.snapshot_payload("p0")["players"] if p["id"] == "p1")
    assert theirs["cards"] == ["??", "??", "??"]


def test_snapshot_includes_legal_only_for_acting_viewer():
    engine = create_engine(players=3)
    start_round(engine, seed=10)
    actor = engine.next_actor()
    payload = engine.snapshot_payload(actor)
    assert payload["current_player"] == actor
    assert payload["legal"] == ["SEE", "FOLD", "BET"]
    assert (payload["min_bet"], payload["max_bet"]) == (10, 20)
    bystander = next(p.id for p in engine.state.players if p.id != actor)
    assert "legal" not in engine.snapshot_payload(bystander)


def test_join_caps_lobby_and_reuses_names():
    engine = GameEngine(TableConfig(max_players=3))
    first = engine.join("Asha")
    assert engine.join("  asha ") is first
    engine.join("Bala")
    engine.join("Chitra")
    with pytest.raises(LobbyError, match="Table is full") as excinfo:
        engine.join("Dev")
    assert excinfo.value.code == "TABLE_FULL"


def test_join_rejected_during_round():
    engine = create_engine(players=2)
    start_round(engine)
    with pytest.raises(LobbyError) as excinfo:
        engine.join("Late")
    assert excinfo.value.code == "ROUND_IN_PROGRESS"


def test_player_joining_between_rounds_is_dealt_in():
    engine = create_engine(players=2)
    start_round(engine, seed=3)
    engine.apply_action(engine.next_actor(), Action.fold())
    late = engine.join("Late")
    state = start_round(engine, seed=4)
    assert late.id in [player.id for player in state.players]


def test_match_over_when_one_funded_player_remains():
    engine = engine_with_round(create_engine(players=2, starting_chips=20), make_round(["Ah Ad Ac", "Kh Qd 2c"], chips=20))
    engine.apply_action("p0", Action.bet(20))
    events = engine.apply_action("p1", Action.show())
    assert {"ev": "ELIMINATED", "player": "p1"} in events
    assert engine.is_match_over()
    result = engine.match_result_payload()
    assert result["winner"]["id"] == "p0"
    assert not engine.can_start_round()
