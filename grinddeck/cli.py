"""
Grind Deck CLI - Command-line interface for the engine.

Usage:
    grinddeck play [--difficulty TIER] [--mode MODE] [--limit N]
    grinddeck history [--count N]
    grinddeck serve [--host HOST] [--port PORT]
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from .engine_core.numeric import format_value

PLAY_HELP = """\
Commands:
  <n>          select card n of your hand (a second number completes the play)
  d            draw a card
  x            clear the selection
  t <deck>     target deck: grind or algebra
  a            apply the algebra function
  ?            list legal moves
  q            end the game
"""


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Grind Deck - arithmetic card game engine",
        prog="grinddeck",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--data-dir",
        default=os.getenv("GRINDDECK_DATA_DIR", str(Path.home() / ".grinddeck")),
        help="Where the high score and match history are kept",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a solo game in the terminal")
    play_parser.add_argument(
        "--difficulty",
        choices=["basic", "decimals", "negative", "functions", "algebra"],
        help="Tier (defaults to the last one played)",
    )
    play_parser.add_argument(
        "--mode",
        default="unlimited",
        choices=["unlimited", "time_limited", "deck_limited", "reach_score"],
        help="Solo mode",
    )
    play_parser.add_argument("--limit", type=float, help="Seconds, cards or target score")
    play_parser.add_argument("--seed", type=int, help="Random seed")

    # History command
    history_parser = subparsers.add_parser("history", help="Show completed games")
    history_parser.add_argument("--count", type=int, default=10, help="Number of games to show")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        cmd_play(args)
    elif args.command == "history":
        cmd_history(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _open_storage(data_dir):
    from .storage import JsonFileKeyValueStore, MatchHistory

    data_dir = Path(data_dir).expanduser()
    return (
        JsonFileKeyValueStore(data_dir / "settings.json"),
        MatchHistory(data_dir / "history.json"),
    )


def _print_state(engine):
    state = engine.state
    print()
    value = "-" if state.grind.value is None else format_value(state.grind.value)
    print(f"Grind Deck: {value}    Score: {format_value(state.current_score)}"
          f"    High score: {format_value(engine.high_score)}")
    if state.algebra.is_active:
        marker = " <" if state.active_target and state.active_target.value == "algebra" else ""
        print(f"Algebra Deck: f(x) = {state.algebra.function_text}{marker}")

    budget = []
    if engine.remaining_time() is not None:
        budget.append(f"{engine.remaining_time()}s left")
    if engine.remaining_cards() is not None:
        budget.append(f"{engine.remaining_cards()} cards left")
    if state.solo.target_score is not None:
        budget.append(f"target {format_value(state.solo.target_score)}")
    if budget:
        print(", ".join(budget))

    cards = []
    for i, card in enumerate(state.hand, 1):
        selected = "*" if card.card_id == state.pending_card_id else ""
        cards.append(f"{i}:[{card.label}]{selected}")
    print("Hand: " + " ".join(cards))


def _describe_action(engine, action):
    hand = {card.card_id: card for card in engine.hand}
    parts = [action.action_type.value]
    for card_id in (action.payload.card_id, action.payload.second_card_id):
        if card_id in hand:
            parts.append(hand[card_id].label)
    target = action.payload.target
    if target is not None:
        parts.append(getattr(target, "value", str(target)))
    return " ".join(parts)


def run_game(engine, read=input):
    """Interactive loop over a started engine. Returns when the game ends."""
    print(PLAY_HELP)
    while not engine.is_game_over:
        engine.tick()
        if engine.is_game_over:
            break
        _print_state(engine)

        try:
            line = read("> ").strip().lower()
        except EOFError:
            line = "q"

        result = None
        if line.isdigit():
            index = int(line) - 1
            hand = engine.hand
            if 0 <= index < len(hand):
                result = engine.select_card(hand[index].card_id)
            else:
                print("No such card")
        elif line == "d":
            result = engine.draw_card()
        elif line == "x":
            result = engine.deselect()
        elif line.startswith("t"):
            target = line[1:].strip() or None
            if target not in (None, "grind", "algebra"):
                print("Target must be grind or algebra")
            else:
                result = engine.set_active_target_deck(target)
        elif line == "a":
            result = engine.apply_algebra_function()
        elif line == "?":
            for action in engine.legal_actions():
                print("  " + _describe_action(engine, action))
        elif line == "q":
            result = engine.end_game()
        else:
            print(PLAY_HELP)

        if result is None:
            continue
        if not result.success:
            print(f"Rejected: {result.error}")
        for change in result.state_changes:
            print(change)

    summary = engine.summary
    print()
    print(f"Game over ({engine.end_reason.value}). Final score: {format_value(engine.current_score)}")
    if summary is not None:
        print(f"Cards played: {summary.cards_played}, time: {summary.time_played}s")


def cmd_play(args):
    """Play a solo game in the terminal."""
    from .engine_core import GameEngine

    kv_store, history = _open_storage(args.data_dir)
    engine = GameEngine(kv_store=kv_store, history=history, random_seed=args.seed)
    try:
        engine.start_game(args.difficulty, args.mode, args.limit)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    run_game(engine)


def cmd_history(args):
    """Show completed games."""
    _, history = _open_storage(args.data_dir)

    entries = history.recent(args.count)
    if not entries:
        print("No games played yet")
        return

    for entry in entries:
        print(
            f"{entry.session_id[:8]}  {entry.difficulty.value:<9} {entry.solo_mode.value:<12} "
            f"score {format_value(entry.score):>8}  {entry.cards_played:>3} cards  "
            f"{entry.time_played:>4}s  {entry.end_reason.value}"
        )
    print()
    print(f"Games: {history.total_games()}  "
          f"Time played: {history.total_time_played()}s  "
          f"Best: {format_value(history.highest_score())}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    os.environ["GRINDDECK_DATA_DIR"] = str(Path(args.data_dir).expanduser())
    uvicorn.run("grinddeck.api.app:create_app", factory=True, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
