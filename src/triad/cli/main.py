from __future__ import annotations

import argparse
import logging
import random
import sys
from collections.abc import Callable
from pathlib import Path

from triad.analysis import summarize_catalog
from triad.engine.actions import Move
from triad.engine.ai import SearchConfig, ai_pick_move
from triad.engine.game import GameConfig, GameState, apply_move, deal
from triad.engine.search import UCTSearch
from triad.engine.types import HAND_SIZE, OWNERS, CardCatalog, CardFace, Owner, RuleError
from triad.paths import get_paths
from triad.services.content import ContentError, ContentService
from triad.services.telemetry import TelemetryService

from .prompts import ask, parse_card, parse_color, parse_move_line
from .render import render_game, render_result

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="triad", description="Triple Triad on a 3x3 board")
    parser.add_argument("--catalog", type=Path, default=None, help="Card list JSON (defaults to bundled data)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play a game", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    play.add_argument("--rules", nargs="*", default=["all_open", "plus"], help="Rule variants in play")
    play.add_argument("--first", choices=OWNERS, default="red", help="Who moves first")
    play.add_argument(
        "--human",
        choices=[*OWNERS, "none", "both"],
        default=None,
        help="Side(s) played from the keyboard; asked interactively when omitted",
    )
    play.add_argument("--hand-red", default=None, help="Comma separated card ids or names for red")
    play.add_argument("--hand-blue", default=None, help="Comma separated card ids or names for blue")
    play.add_argument("--enter-opponent", action="store_true", help="Type the AI's five cards in by hand")
    play.add_argument("--playouts", type=int, default=2000, help="Search playouts per AI move")
    play.add_argument("--workers", type=int, default=4, help="Threads running playouts")
    play.add_argument("--seed", type=int, default=None, help="Seed for dealing and search")
    play.add_argument("--no-telemetry", action="store_true", help="Do not write userdata/telemetry.jsonl")

    sub.add_parser("cards", help="Summarize the card catalog")
    return parser


def _hand_from_arg(catalog: CardCatalog, raw: str) -> list[CardFace]:
    faces = [parse_card(catalog, part) for part in raw.split(",") if part.strip()]
    if len(faces) != HAND_SIZE:
        raise ValueError(f"Expected {HAND_SIZE} cards, got {len(faces)}")
    return faces


def _prompt_hand(catalog: CardCatalog, owner: Owner, input_fn: Callable[[str], str]) -> list[CardFace]:
    return [
        ask(f"{owner.capitalize()} card {i + 1} (id or name):", lambda s: parse_card(catalog, s), input_fn)
        for i in range(HAND_SIZE)
    ]


def _random_hand(catalog: CardCatalog, rng: random.Random) -> list[CardFace]:
    ids = rng.sample(list(catalog.all_ids()), HAND_SIZE)
    return [catalog.get(i) for i in ids]


def _human_sides(choice: str | None, input_fn: Callable[[str], str]) -> frozenset[Owner]:
    if choice is None:
        return frozenset({ask("Which color will you play? (red/blue)", parse_color, input_fn)})
    if choice == "none":
        return frozenset()
    if choice == "both":
        return frozenset(OWNERS)
    return frozenset({choice})  # type: ignore[arg-type]


def _human_move(state: GameState, input_fn: Callable[[str], str]) -> Move:
    hand = state.hands[state.turn]
    slot, coord = ask(
        f"{state.turn.capitalize()}, enter your next move (slot row,col):",
        lambda line: parse_move_line(hand, line),
        input_fn,
    )
    card = hand[slot]
    assert card is not None
    return Move(card=card, coord=coord, player=state.turn, hand_index=slot)


def play_game(
    state: GameState,
    humans: frozenset[Owner],
    search: UCTSearch,
    telemetry: TelemetryService,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> GameState:
    hidden = frozenset(o for o in OWNERS if o not in humans) if humans else frozenset()
    telemetry.log_game_started(state)
    while not state.is_over():
        output_fn(render_game(state, hidden))
        if state.turn in humans:
            move = _human_move(state, input_fn)
        else:
            picked = ai_pick_move(state, search)
            if picked is None:
                break
            move = picked
            output_fn(
                f"{state.turn.capitalize()} plays {move.card.face.name} at "
                f"{move.coord.row + 1},{move.coord.col + 1}"
            )
        result = apply_move(state, move)
        if not result.ok:
            output_fn(f"Invalid Move! {result.error} Try again")
            continue
        telemetry.log_move(move)
    output_fn(render_game(state))
    output_fn(render_result(state))
    telemetry.log_game_ended(state)
    return state


def _cmd_play(args: argparse.Namespace, catalog: CardCatalog, input_fn: Callable[[str], str]) -> int:
    paths = get_paths()
    rng = random.Random(args.seed)
    try:
        config = GameConfig(rules=frozenset(args.rules), first_player=args.first)
    except RuleError as e:
        logger.error("%s", e)
        return 2

    humans = _human_sides(args.human, input_fn)
    hands: dict[Owner, list[CardFace]] = {}
    for owner, raw in (("red", args.hand_red), ("blue", args.hand_blue)):
        if raw:
            hands[owner] = _hand_from_arg(catalog, raw)
        elif args.enter_opponent and owner not in humans:
            hands[owner] = _prompt_hand(catalog, owner, input_fn)
        else:
            hands[owner] = _random_hand(catalog, rng)

    state = deal(hands["red"], hands["blue"], config)
    search = UCTSearch(SearchConfig(playouts=args.playouts, workers=args.workers, seed=args.seed))
    telemetry = TelemetryService(paths.userdata_dir / "telemetry.jsonl", enabled=not args.no_telemetry)
    logger.info(
        "%s moves first. Human side(s): %s",
        config.first_player.capitalize(),
        ", ".join(sorted(humans)) or "none",
    )
    play_game(state, humans, search, telemetry, input_fn)
    return 0


def _cmd_cards(catalog: CardCatalog, output_fn: Callable[[str], None] = print) -> int:
    summary = summarize_catalog(catalog)
    for stars, count in summary.by_stars.items():
        output_fn(f"Number of {stars}* cards: {count}")
    for key, cards in summary.three_star_groups.items():
        label = key if key is not None else "Not meta"
        output_fn(f"Number of {label} cards: {len(cards)}")
        for card in cards:
            output_fn(f"  {card.id:>4} {card.name} {card.edges()}")
    return 0


def main(argv: list[str] | None = None, input_fn: Callable[[str], str] = input) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(args.verbose)

    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    try:
        catalog = content.load_catalog(args.catalog)
    except ContentError as e:
        logger.error("%s", e)
        return 1

    if args.command == "cards":
        return _cmd_cards(catalog)
    try:
        return _cmd_play(args, catalog, input_fn)
    except (EOFError, KeyboardInterrupt):
        logger.info("\nGame abandoned")
        return 130
    except ValueError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
