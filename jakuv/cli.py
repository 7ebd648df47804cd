"""
Jakuv CLI - Command-line interface for the engine.

Usage:
    jakuv simulate --games N --seed S    Play AI against AI and print results
    jakuv rules                          Print the active rule configuration
    jakuv serve --port P                 Run the HTTP API
"""

import argparse
import json
import logging
import sys
from collections import Counter


PROVIDERS = ["heuristic", "random", "first"]


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Jakuv - two-player card game rules engine",
        prog="jakuv",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Process log level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play AI against AI")
    simulate_parser.add_argument("--games", type=int, default=10, help="Number of games")
    simulate_parser.add_argument("--seed", type=int, default=0, help="Base random seed")
    simulate_parser.add_argument("--p1", choices=PROVIDERS, default="heuristic", help="Policy for seat 1")
    simulate_parser.add_argument("--p2", choices=PROVIDERS, default="random", help="Policy for seat 2")
    simulate_parser.add_argument("--target", type=int, default=None, help="Override the target score")
    simulate_parser.add_argument("--verbose", "-v", action="store_true", help="Print each game")

    # Rules command
    subparsers.add_parser("rules", help="Print the active rule configuration")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "rules":
        cmd_rules(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Play seeded AI-vs-AI games and summarize the outcomes."""
    from .bots import create_policy
    from .engine_core.rules import create_rules
    from .session import SessionManager, GameLoop, LoopState, HUMAN_PLAYER_ID

    overrides = {"target_score": args.target} if args.target is not None else {}
    rules = create_rules(**overrides)
    manager = SessionManager(rules=rules)

    wins: Counter = Counter()
    reasons: Counter = Counter()
    total_turns = 0
    stalled = 0

    for i in range(args.games):
        seed = args.seed + i
        session = manager.create_session(
            player_name=f"P1 ({args.p1})",
            ai_name=f"P2 ({args.p2})",
            ai_policy=create_policy(args.p2, seed=seed, rules=rules),
            seed=seed,
            start=False,
        )
        session.bots[HUMAN_PLAYER_ID] = create_policy(args.p1, seed=seed + 10_000, rules=rules)
        session.human_player_id = None
        manager.start_new_game(session.session_id)

        loop = GameLoop(session, max_steps=5000)
        result = loop.run_ai()
        loop.close()
        manager.end_session(session.session_id)

        state = session.game_state
        total_turns += state.turn
        if result.loop_state != LoopState.GAME_OVER or state.winner is None:
            stalled += 1
            outcome = "no result"
        else:
            winner = state.players[state.winner]
            wins[winner.name] += 1
            reasons[state.win_reason] += 1
            outcome = f"{winner.name} won ({state.win_reason})"

        if args.verbose:
            print(f"Game {i + 1} (seed {seed}): {outcome} after {state.turn} turns, "
                  f"{len(result.fallbacks)} fallback(s)")

    print(f"Games played: {args.games}")
    for name, count in wins.most_common():
        print(f"  {name}: {count} win(s)")
    if stalled:
        print(f"  unfinished: {stalled}")
    print("Win reasons:")
    for reason, count in reasons.most_common():
        print(f"  {reason}: {count}")
    if args.games:
        print(f"Average turns: {total_turns / args.games:.1f}")


def cmd_rules(args):
    """Print the active rule configuration."""
    from .engine_core.rules import RuleConfig

    print(json.dumps(RuleConfig().model_dump(), indent=2))


def cmd_serve(args):
    """Run the API under uvicorn."""
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
