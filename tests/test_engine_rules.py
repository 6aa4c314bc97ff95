from __future__ import annotations

import pytest

from triad.engine.actions import Move
from triad.engine.game import (
    EngineInvariantError,
    GameConfig,
    GameState,
    StepResult,
    add_card_to_hand,
    apply_move,
    cards_in_play,
    deal,
    derived_score,
    is_valid_move,
    legal_moves,
    new_game,
    resolve_comparisons,
)
from triad.engine.serialize import snapshot
from triad.engine.types import CardFace, Coord, PlacedCard, RuleError, parse_rules


def _face(card_id: int, top: int, right: int, bottom: int, left: int) -> CardFace:
    return CardFace(id=card_id, name=f"card-{card_id}", stars=1, top=top, right=right, bottom=bottom, left=left)


def _wall(card_id: int) -> CardFace:
    return _face(card_id, 9, 9, 9, 9)


def _flat(card_id: int, value: int = 5) -> CardFace:
    return _face(card_id, value, value, value, value)


def _play(state: GameState, slot: int, row: int, col: int) -> StepResult:
    card = state.hands[state.turn][slot]
    assert card is not None
    return apply_move(state, Move(card=card, coord=Coord(row, col), player=state.turn, hand_index=slot))


def _owner_at(state: GameState, row: int, col: int) -> str | None:
    cell = state.board[Coord(row, col).index]
    return None if cell is None else cell.owner


def _types(result: StepResult) -> list[object]:
    return [e["type"] for e in result.events]


def test_capture_when_stronger_than_neighbor_above() -> None:
    red = [_flat(1), _face(2, 8, 1, 1, 1), _flat(3), _flat(4), _flat(5)]
    blue = [_face(11, 5, 5, 3, 5), _flat(12), _flat(13), _flat(14), _flat(15)]
    state = deal(red, blue, GameConfig(rules=frozenset(), first_player="red"))

    assert _play(state, 0, 2, 2).ok
    assert _play(state, 0, 0, 1).ok
    res = _play(state, 1, 1, 1)

    assert res.ok
    assert res.outcome == "continue"
    assert _owner_at(state, 0, 1) == "red"
    assert "CARD_CAPTURED" in _types(res)
    assert derived_score(state, "red") == 3 + 3 - 5
    assert derived_score(state, "blue") == 4 + 0 - 5
    assert state.turn == "blue"


def test_own_card_is_not_captured() -> None:
    red = [_face(1, 5, 5, 3, 5), _face(2, 8, 1, 1, 1), _flat(3), _flat(4), _flat(5)]
    blue = [_flat(11), _flat(12), _flat(13), _flat(14), _flat(15)]
    state = deal(red, blue, GameConfig(rules=frozenset()))

    assert _play(state, 0, 0, 1).ok
    assert _play(state, 0, 2, 2).ok
    res = _play(state, 1, 1, 1)

    assert _owner_at(state, 0, 1) == "red"
    assert "CARD_CAPTURED" not in _types(res)


def test_equal_edges_do_not_capture() -> None:
    red = [_flat(1), _flat(2), _flat(3), _flat(4), _flat(5)]
    blue = [_flat(11), _flat(12), _flat(13), _flat(14), _flat(15)]
    state = deal(red, blue, GameConfig(rules=frozenset()))

    _play(state, 0, 0, 0)
    res = _play(state, 0, 0, 1)

    assert _owner_at(state, 0, 0) == "red"
    assert "CARD_CAPTURED" not in _types(res)


def _plus_setup(rules: frozenset[str]) -> GameState:
    red = [_wall(1), _wall(2), _wall(3), _wall(4), _face(5, 8, 1, 5, 3)]
    blue = [
        _face(11, 5, 5, 1, 5),  # above the centre
        _face(12, 5, 6, 5, 5),  # left of the centre
        _face(13, 2, 5, 5, 4),  # below the centre
        _face(14, 5, 2, 5, 5),  # top-left corner
        _flat(15),
    ]
    state = deal(red, blue, GameConfig(rules=rules, first_player="red"))
    for slot, (red_cell, blue_cell) in enumerate(
        [((0, 2), (0, 1)), ((2, 0), (1, 0)), ((2, 2), (2, 1)), ((1, 2), (0, 0))]
    ):
        assert _play(state, slot, *red_cell).ok
        assert _play(state, slot, *blue_cell).ok
    return state


def test_plus_captures_tied_neighbors_and_chains() -> None:
    state = _plus_setup(frozenset({"plus"}))
    # Two red walls touching on equal sums never start a chain against their own owner.
    assert not any(e["type"] == "PLUS_TRIGGERED" for e in state.event_log)
    assert _owner_at(state, 0, 0) == "blue"

    res = _play(state, 4, 1, 1)

    assert res.ok
    types = _types(res)
    assert types.count("PLUS_TRIGGERED") == 1
    plus = next(e for e in res.events if e["type"] == "PLUS_TRIGGERED")
    assert plus["sum"] == 9
    assert sorted(plus["cells"]) == [[0, 1], [1, 0]]  # type: ignore[arg-type]

    # Below neighbour (sum 7) is taken by an ordinary capture.
    assert _owner_at(state, 2, 1) == "red"
    # Left neighbour would have survived an ordinary comparison (3 vs 6).
    assert _owner_at(state, 1, 0) == "red"
    assert _owner_at(state, 0, 1) == "red"


def test_combo_cascade_resolves_depth_first() -> None:
    state = _plus_setup(frozenset({"plus"}))
    res = _play(state, 4, 1, 1)

    combos = [(e["row"], e["col"]) for e in res.events if e["type"] == "COMBO_PLACED"]
    # The re-placed top card out-values the corner, whose chain finishes
    # before the left card is re-placed.
    assert combos == [(0, 1), (0, 0), (1, 0)]
    assert _owner_at(state, 0, 0) == "red"
    assert all(c is not None and c.owner == "red" for c in state.board)
    assert "TURN_ENDED" in _types(res)


def test_full_board_reports_winner() -> None:
    state = _plus_setup(frozenset({"plus"}))
    res = _play(state, 4, 1, 1)

    assert res.outcome == "win"
    assert res.winner == "red"
    assert derived_score(state, "red") == 4
    assert derived_score(state, "blue") == -4
    assert cards_in_play(state) == 10


def test_without_plus_only_ordinary_captures_apply() -> None:
    state = _plus_setup(frozenset())
    res = _play(state, 4, 1, 1)

    assert "PLUS_TRIGGERED" not in _types(res)
    assert "COMBO_PLACED" not in _types(res)
    assert _owner_at(state, 0, 1) == "red"
    assert _owner_at(state, 2, 1) == "red"
    assert _owner_at(state, 1, 0) == "blue"
    assert _owner_at(state, 0, 0) == "blue"


def test_plus_group_without_opponent_cards_does_not_chain() -> None:
    red = [_face(1, 1, 1, 1, 1), _face(2, 6, 6, 6, 6), _face(3, 8, 1, 1, 3), _flat(4), _flat(5)]
    blue = [_flat(11, 1), _flat(12, 1), _flat(13), _flat(14), _flat(15)]
    state = deal(red, blue, GameConfig(rules=frozenset({"plus"})))

    _play(state, 0, 0, 1)
    _play(state, 0, 2, 2)
    _play(state, 1, 1, 0)
    _play(state, 1, 2, 0)
    res = _play(state, 2, 1, 1)

    assert res.ok
    assert "PLUS_TRIGGERED" not in _types(res)
    assert "COMBO_PLACED" not in _types(res)
    assert _owner_at(state, 0, 1) == "red"
    assert _owner_at(state, 1, 0) == "red"


def test_plus_group_with_one_opponent_card_chains() -> None:
    red = [_face(1, 5, 5, 1, 5), _wall(2), _face(3, 8, 1, 5, 3), _flat(4), _flat(5)]
    blue = [_flat(11), _face(12, 5, 6, 5, 5), _flat(13), _flat(14), _flat(15)]
    state = deal(red, blue, GameConfig(rules=frozenset({"plus"})))

    assert _play(state, 0, 0, 1).ok
    assert _play(state, 0, 2, 2).ok
    assert _play(state, 1, 2, 0).ok
    assert _play(state, 1, 1, 0).ok
    # Own card above (8 + 1) and opponent card to the left (3 + 6) tie on 9.
    res = _play(state, 2, 1, 1)

    assert res.ok
    assert _types(res) == ["CARD_PLAYED", "PLUS_TRIGGERED", "COMBO_PLACED", "COMBO_PLACED", "TURN_ENDED"]
    combos = [(e["row"], e["col"]) for e in res.events if e["type"] == "COMBO_PLACED"]
    assert combos == [(0, 1), (1, 0)]
    assert _owner_at(state, 0, 1) == "red"
    assert _owner_at(state, 1, 0) == "red"
    assert cards_in_play(state) == 10


def test_combo_placement_does_not_check_plus() -> None:
    red = [_wall(1), _wall(2), _wall(3), _wall(4), _face(5, 5, 1, 2, 3)]
    blue = [
        _flat(11),  # top-left corner
        _face(12, 5, 5, 5, 4),  # top-right corner
        _face(13, 5, 4, 4, 3),  # above the centre
        _face(14, 2, 6, 3, 5),  # left of the centre
        _flat(15),
    ]
    state = deal(red, blue, GameConfig(rules=frozenset({"plus"})))
    for slot, (red_cell, blue_cell) in enumerate(
        [((2, 0), (0, 0)), ((1, 2), (0, 2)), ((2, 2), (0, 1)), ((2, 1), (1, 0))]
    ):
        assert _play(state, slot, *red_cell).ok
        assert _play(state, slot, *blue_cell).ok

    res = _play(state, 4, 1, 1)

    assert res.ok
    assert _types(res).count("PLUS_TRIGGERED") == 1
    # The re-placed top card meets both corners on a sum of 8 without out-valuing either.
    assert _owner_at(state, 0, 1) == "red"
    assert _owner_at(state, 1, 0) == "red"
    assert _owner_at(state, 0, 0) == "blue"
    assert _owner_at(state, 0, 2) == "blue"
    assert res.outcome == "win"
    assert derived_score(state, "red") == 2


def test_draw_when_scores_tie() -> None:
    red = [_flat(i) for i in range(1, 6)]
    blue = [_flat(i) for i in range(11, 16)]
    state = deal(red, blue, GameConfig(rules=frozenset()))

    res: StepResult | None = None
    while not state.is_over():
        res = apply_move(state, legal_moves(state)[0])
        assert res.ok

    assert res is not None
    assert res.outcome == "draw"
    assert res.winner is None
    assert derived_score(state, "red") == derived_score(state, "blue") == 0
    assert sum(1 for c in state.hands["blue"] if c is not None) == 1


def test_illegal_moves_change_nothing() -> None:
    red = [_flat(i) for i in range(1, 6)]
    blue = [_flat(i) for i in range(11, 16)]
    state = deal(red, blue, GameConfig(rules=frozenset({"plus"})))
    _play(state, 0, 1, 1)

    before = snapshot(state)
    log_len = len(state.event_log)
    blue_card = state.hands["blue"][0]
    red_card = state.hands["red"][1]
    assert blue_card is not None and red_card is not None

    wrong_turn = Move(card=red_card, coord=Coord(0, 0), player="red", hand_index=1)
    occupied = Move(card=blue_card, coord=Coord(1, 1), player="blue", hand_index=0)
    not_held = Move(card=PlacedCard(_flat(99), "blue"), coord=Coord(0, 0), player="blue")
    wrong_slot = Move(card=blue_card, coord=Coord(0, 0), player="blue", hand_index=3)

    assert is_valid_move(state, Move(card=blue_card, coord=Coord(0, 0), player="blue", hand_index=0))
    for move in (wrong_turn, occupied, not_held, wrong_slot):
        assert not is_valid_move(state, move)
        res = apply_move(state, move)
        assert not res.ok
        assert res.error is not None
        assert snapshot(state) == before
        assert len(state.event_log) == log_len


def test_moves_after_game_end_are_rejected() -> None:
    state = _plus_setup(frozenset({"plus"}))
    _play(state, 4, 1, 1)
    assert state.is_over()
    assert legal_moves(state) == []

    spare = state.hands["blue"][4]
    assert spare is not None
    res = apply_move(state, Move(card=spare, coord=Coord(1, 1), player="blue", hand_index=4))
    assert not res.ok
    assert res.error == "Game already ended."


def test_hand_slot_picks_the_right_duplicate() -> None:
    twin = _flat(7)
    red = [twin, twin, _flat(3), _flat(4), _flat(5)]
    blue = [_flat(i) for i in range(11, 16)]
    state = deal(red, blue)

    assert _play(state, 1, 0, 0).ok
    assert state.hands["red"][0] is not None
    assert state.hands["red"][1] is None

    # Without a slot the first equal card goes.
    _play(state, 0, 2, 2)
    card = state.hands["red"][0]
    assert card is not None
    assert apply_move(state, Move(card=card, coord=Coord(0, 2), player="red")).ok
    assert state.hands["red"][0] is None


def test_missing_hand_card_is_an_invariant_violation() -> None:
    state = deal([_flat(i) for i in range(1, 6)], [_flat(i) for i in range(11, 16)])
    stray = Move(card=PlacedCard(_flat(99), "red"), coord=Coord(0, 0), player="red")
    with pytest.raises(EngineInvariantError):
        resolve_comparisons(state, stray, [])


def test_legal_moves_cover_hand_times_open_cells() -> None:
    state = deal([_flat(i) for i in range(1, 6)], [_flat(i) for i in range(11, 16)])
    assert len(legal_moves(state)) == 5 * 9

    _play(state, 2, 0, 0)
    moves = legal_moves(state)
    assert len(moves) == 5 * 8
    assert all(m.player == "blue" and m.hand_index is not None for m in moves)
    assert Coord(0, 0) not in {m.coord for m in moves}


def test_hand_building() -> None:
    state = new_game()
    for i in range(5):
        assert add_card_to_hand(state, _flat(i), "red") == i
    with pytest.raises(ValueError):
        add_card_to_hand(state, _flat(9), "red")
    with pytest.raises(ValueError):
        deal([_flat(1)], [_flat(2)])


def test_rule_validation() -> None:
    assert parse_rules(["plus", "All-Open"]) == frozenset({"plus", "all_open"})
    with pytest.raises(RuleError):
        parse_rules(["same"])
    with pytest.raises(RuleError):
        parse_rules(["bogus"])
    with pytest.raises(RuleError):
        GameConfig(rules=frozenset({"fallen_ace"}))  # type: ignore[arg-type]


def test_coord_bounds() -> None:
    assert Coord.at(2, 2) == Coord(2, 2)
    assert Coord.at(-1, 0) is None
    assert Coord.at(0, 3) is None
    with pytest.raises(ValueError):
        Coord(3, 0)
    assert [c.index for c in Coord.all()] == list(range(9))
