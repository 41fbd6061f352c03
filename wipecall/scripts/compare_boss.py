import argparse
import asyncio
import logging
import sys

from wipecall.analysis.comparison import compare_across_sessions
from wipecall.analysis.dps import aggregate_dps
from wipecall.config import get_settings
from wipecall.wcl.auth import WCLAuth
from wipecall.wcl.client import WCLClient
from wipecall.wcl.source import WCLSource

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare attempts at one boss across WCL reports",
    )
    parser.add_argument(
        "--report-code", dest="report_codes", action="append", required=True,
        help="WCL report code (repeat for several raid nights)",
    )
    parser.add_argument("--boss", required=True, help="Boss name (substring match)")
    parser.add_argument("--difficulty", type=int, default=None, help="Exact difficulty id")
    parser.add_argument(
        "--dps", action="store_true",
        help="Aggregate DPS instead of analyzing deaths",
    )
    parser.add_argument("--start", type=float, default=None, help="DPS window start (s)")
    parser.add_argument("--end", type=float, default=None, help="DPS window end (s)")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> str:
    """Run the requested analysis and return it as indented JSON."""
    settings = get_settings()
    auth = WCLAuth.from_settings(settings)
    async with WCLClient(
        auth, api_url=settings.wcl.api_url, timeout=settings.wcl.timeout,
    ) as wcl:
        source = WCLSource(wcl, max_event_pages=settings.wcl.max_event_pages)
        if args.dps:
            result = await aggregate_dps(
                source, args.report_codes, args.boss, args.difficulty,
                args.start, args.end,
                baseline_source=source,
                region=settings.analysis.baseline_region,
                baseline_difficulty=settings.analysis.baseline_difficulty,
            )
        else:
            result = await compare_across_sessions(
                source, args.report_codes, args.boss, args.difficulty,
                config=settings.analysis,
            )
    return result.model_dump_json(by_alias=True, indent=2)


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=get_settings().log_level)
    sys.stdout.write(asyncio.run(run(args)) + "\n")


if __name__ == "__main__":
    main()
