#!/usr/bin/env python3
"""
Blockfall command-line interface.
Runs the engine headless: a demo game driven by a random player, a config summary and a benchmark.
"""

import argparse
import logging
import random
import sys
import time
from typing import Optional

from .config import GameConfig, default_config, load_config
from .controls import Command
from .exceptions import ConfigError
from .tetris_engine import GamePhase, TetrisEngine

FRAME_MS = 1000.0 / 60.0


def _load(path: Optional[str]) -> GameConfig:
    return load_config(path) if path else default_config()


def _start(engine: TetrisEngine):
    """Walk the title and controls screens the way a player would."""
    engine.handle_key("Enter")  # Title -> Controls
    engine.handle_key("Enter")  # Controls -> Playing


def _play_piece(engine: TetrisEngine, player: random.Random, now_ms: float) -> float:
    """Steer the current piece randomly, let gravity run a little, then hard drop it."""
    for _ in range(player.randint(0, 3)):
        now_ms += 200.0
        engine.dispatch(Command.ROTATE, now_ms)

    shift = player.randint(-5, 5)
    step = Command.MOVE_LEFT if shift < 0 else Command.MOVE_RIGHT
    for _ in range(abs(shift)):
        now_ms += 150.0
        engine.dispatch(step, now_ms)

    if player.random() < 0.2 and engine.state.can_hold:
        engine.dispatch(Command.HOLD, now_ms)

    for _ in range(player.randint(0, 30)):
        engine.tick(FRAME_MS, now_ms=now_ms)
        now_ms += FRAME_MS
        if engine.phase is not GamePhase.PLAYING:
            return now_ms

    engine.dispatch(Command.HARD_DROP, now_ms)
    return now_ms


def demo_game(args):
    """Run a demo game with a random player."""
    config = _load(args.config)
    engine = TetrisEngine(config, seed=args.seed)
    player = random.Random(args.seed)

    print("Blockfall Demo")
    print("=" * 50)

    _start(engine)
    start_time = time.perf_counter()
    now_ms = 0.0
    pieces = 0

    while engine.phase is GamePhase.PLAYING and pieces < args.pieces:
        now_ms = _play_piece(engine, player, now_ms)
        pieces += 1

        if args.show_every and pieces % args.show_every == 0:
            snapshot = engine.get_game_state()
            upcoming = " ".join(d.name for d in snapshot.upcoming)
            print(f"\nPiece: {pieces}  Level: {snapshot.level}  Lines: {snapshot.lines_cleared}  Score: {snapshot.score}"
                  f"  Next: {snapshot.next_piece.name} (then {upcoming})")
            print(engine.board.to_string(engine.current_piece))
            print("-" * 30)

    duration = time.perf_counter() - start_time
    state = engine.get_game_state()

    print("\n" + "=" * 50)
    print(config.text("gameOverTitle", "GAME OVER") if state.phase is GamePhase.GAME_OVER else "DEMO FINISHED")
    print("=" * 50)
    print(engine.board.to_string(state.current_piece))
    print(f"{config.text('gameOverScore', 'Final Score: ')}{state.score}")
    print(f"Lines Cleared: {state.lines_cleared}")
    print(f"Level Reached: {state.level}")
    print(f"Fall Interval: {state.fall_interval:.1f} ms")
    print(f"Pieces Played: {pieces}")
    print(f"Game Duration: {duration:.2f} seconds")


def show_config(args):
    """Print a summary of a configuration file."""
    config = _load(args.config)
    settings = config.game_settings

    print(f"Grid: {settings.grid_width}x{settings.grid_height}")
    print(f"Initial fall speed: {settings.initial_fall_speed} ms")
    print(f"Level up every {settings.level_up_line_count} lines (x{settings.level_up_speed_multiplier})")
    print(f"Score per line: {settings.score_per_line}, "
          f"hard drop: {settings.score_per_hard_drop_block}, soft drop: {settings.score_per_soft_drop_block}")
    print(f"Kick offsets: {list(settings.kick_offsets)}")
    print("Pieces:")
    for t in config.tetrominoes:
        print(f"  {t.id}: {t.name} ({len(t.shapes)} rotations, spawn offset {t.spawn_offset_x},{t.spawn_offset_y})")


def benchmark(args):
    """Run performance benchmarks."""
    config = _load(args.config)
    engine = TetrisEngine(config, seed=args.seed)
    player = random.Random(args.seed)
    _start(engine)

    print("Blockfall Performance Benchmark")
    print("=" * 50)

    start_time = time.perf_counter()
    now_ms = 0.0
    pieces = 0
    games = 1
    for _ in range(args.pieces):
        if engine.phase is GamePhase.GAME_OVER:
            engine.handle_key("r")
            _start(engine)
            games += 1
        now_ms = _play_piece(engine, player, now_ms)
        pieces += 1
    elapsed = time.perf_counter() - start_time

    print(f"{pieces} pieces over {games} game(s) in {elapsed:.3f}s ({pieces / elapsed:.0f} pieces/s)")

    start_time = time.perf_counter()
    for _ in range(1000):
        engine.get_game_state()
    snapshot_time = time.perf_counter() - start_time
    print(f"Snapshots: 1000 in {snapshot_time:.3f}s ({1000 / snapshot_time:.0f} snapshots/s)")


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Blockfall: a configurable falling-block puzzle engine")
    parser.add_argument('--config', default=None, help='Path to a JSON configuration (default: bundled)')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (DEBUG, INFO, WARNING, ...)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    demo_parser = subparsers.add_parser('demo', help='Run a demo game with a random player')
    demo_parser.add_argument('--seed', type=int, default=None, help='Seed for the randomizer and the player')
    demo_parser.add_argument('--pieces', type=int, default=200, help='Maximum number of pieces to play')
    demo_parser.add_argument('--show-every', type=int, default=0, help='Print the board every N pieces')

    subparsers.add_parser('config', help='Summarize the configuration')

    benchmark_parser = subparsers.add_parser('benchmark', help='Run performance benchmarks')
    benchmark_parser.add_argument('--seed', type=int, default=0, help='Seed for the randomizer and the player')
    benchmark_parser.add_argument('--pieces', type=int, default=2000, help='Number of pieces to play')

    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format='[BLOCKFALL] %(asctime)s %(levelname)s %(name)s - %(message)s')

    try:
        if args.command == 'demo':
            demo_game(args)
        elif args.command == 'config':
            show_config(args)
        elif args.command == 'benchmark':
            benchmark(args)
        else:
            parser.print_help()
            print("\nFor a quick demo, run: blockfall demo")
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
