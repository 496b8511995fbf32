"""Command line entry point: python -m awswaf_solver [url]."""

import argparse
import asyncio
import logging

from awswaf_solver.config import default_config
from awswaf_solver.errors import SolverServiceError
from awswaf_solver.solver import AwsWafSolver


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="awswaf-solver",
        description="Access an AWS WAF protected page by solving its challenge through CapSolver.",
    )
    parser.add_argument("url", nargs="?", help="protected page (default: $AWSWAF_TARGET_URL)")
    parser.add_argument("--proxy", help="proxy as user:pass@host:port or host:port (default: $AWSWAF_PROXY)")
    parser.add_argument("--async", dest="use_async", action="store_true", help="use the async rnet client")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser.parse_args(argv)


def run(config) -> bool:
    with AwsWafSolver(config) as solver:
        try:
            balance = solver.task_client.get_balance()
        except SolverServiceError as e:
            print(f"CapSolver rejected the account: {e}")
            return False
        if balance is not None:
            print(f"CapSolver balance: ${balance}")
        return solver.solve()


async def run_async(config) -> bool:
    # rnet is only needed for the async client
    from awswaf_solver.aio import AsyncAwsWafSolver

    solver = AsyncAwsWafSolver(config)
    try:
        balance = await solver.task_client.get_balance()
    except SolverServiceError as e:
        print(f"CapSolver rejected the account: {e}")
        return False
    if balance is not None:
        print(f"CapSolver balance: ${balance}")
    return await solver.solve()


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load configuration
    config = default_config()
    if args.url:
        config.target_url = args.url
    if args.proxy:
        config.proxy = args.proxy

    # Validate API key
    if not config.api_key:
        raise SystemExit(
            "CAPSOLVER_API_KEY environment variable not set. "
            "Get your API key at https://capsolver.com"
        )

    try:
        success = asyncio.run(run_async(config)) if args.use_async else run(config)
    except ValueError as e:
        raise SystemExit(f"Invalid configuration: {e}")

    if success:
        print("\n✅ AWS WAF bypass successful!")
        print("Send the aws-waf-token cookie with further requests to the same site.")
    else:
        print("\n❌ AWS WAF bypass failed.")
        print("The IP may be blocked or the challenge could not be solved.")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
