#!/usr/bin/env python3
"""Play a table of bots against each other without any UI or sockets.

Every seat is a BotAgent running the weighted-random strategy, so a seed makes
the whole run reproducible.

Example:
    python -m practice.simulate --players 4 --rounds 200 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import Dict, List, Optional, Tuple

from host.session import TableSession
from patti.agents import BotAgent, PlayerAgent
from patti.game import GameEngine
from patti.models import TableConfig

from .bots import baseline_strategy

LOGGER = logging.getLogger("patti_simulate")


def build_table(players: int, config: TableConfig, seed: Optional[int] = None) -> TableSession:
    engine = GameEngine(config)
    rng = random.Random(seed)
    agents: Dict[str, PlayerAgent] = {}
    for idx in range(players):
        player = engine.join(f"SimBot{idx}", player_id=f"bot-{idx}")
        agents[player.id] = BotAgent(player.id, baseline_strategy, random.Random(rng.random()))
    return TableSession(engine, agents, bot_delay_ms=0, move_time_ms=0, max_rounds=None)


async def run_simulation(
    players: int, rounds: int, config: TableConfig, seed: Optional[int] = None
) -> Tuple[TableSession, List[Dict[str, object]]]:
    """Run up to ``rounds`` rounds; returns the session and one end-of-round payload per round."""
    session = build_table(players, config, seed)
    session.max_rounds = rounds
    results: List[Dict[str, object]] = []

    async def record(msg_type: str, payload: Dict[str, object]) -> None:
        if msg_type == "end_round":
            results.append(payload)

    session.subscribe(record)
    await session.run(seed=seed)
    return session, results


def standings(engine: GameEngine) -> List[Dict[str, object]]:
    return sorted(
        ({"name": player.name, "chips": player.chips} for player in engine.players),
        key=lambda entry: entry["chips"],
        reverse=True,
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate Teen Patti rounds between bots")
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--rounds", type=int, default=100)
    parser.add_argument("--starting-chips", type=int, default=1_000)
    parser.add_argument("--stake", type=int, default=10)
    parser.add_argument("--boot", type=int, default=0)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


async def _main(args: argparse.Namespace) -> None:
    config = TableConfig(
        max_players=max(args.players, 2),
        starting_chips=args.starting_chips,
        initial_stake=args.stake,
        boot=args.boot,
    )
    session, results = await run_simulation(args.players, args.rounds, config, args.seed)
    LOGGER.info("Played %s rounds", len(results))
    for entry in standings(session.engine):
        LOGGER.info("%-10s %6s", entry["name"], entry["chips"])
    if session.engine.is_match_over():
        LOGGER.info("Table winner: %s", session.engine.match_result_payload()["winner"])


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        asyncio.run(_main(args))
    except KeyboardInterrupt:
        LOGGER.info("Simulation interrupted; shutting down")


if __name__ == "__main__":
    main()
