import argparse
import asyncio
import logging

from patti.models import TableConfig
from .server import HostServer

logging.basicConfig(level=logging.INFO)


def main() -> None:
    parser = argparse.ArgumentParser(description="Teen Patti table host")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--bots", type=int, default=3, help="Automated opponents seated with the browser player")
    parser.add_argument("--max-players", type=int, default=6)
    parser.add_argument("--starting-chips", type=int, default=1_000)
    parser.add_argument("--stake", type=int, default=10, help="Opening stake for every round")
    parser.add_argument("--boot", type=int, default=0, help="Ante collected from each player at deal")
    parser.add_argument(
        "--move-time",
        type=int,
        default=30_000,
        help="Move time in milliseconds before an idle player is folded (0 disables)",
    )
    parser.add_argument("--bot-delay", type=int, default=1_000, help="Pause before automated moves (milliseconds)")
    parser.add_argument("--seed", type=int, default=None, help="Seed shuffles and bot decisions for replays")
    parser.add_argument("--base-url", default="http://localhost:8765", help="Prefix used for invite links")
    args = parser.parse_args()

    config = TableConfig(
        max_players=args.max_players,
        starting_chips=args.starting_chips,
        initial_stake=args.stake,
        boot=args.boot,
        move_time_ms=args.move_time,
        bot_delay_ms=args.bot_delay,
    )

    server = HostServer(config, bots=args.bots, seed=args.seed, base_url=args.base_url)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
