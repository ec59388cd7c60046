import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv

from provider_module.dyn_client import DynClient
from report_module.report import format_report, print_results
from report_module.slack import SlackNotifier
from scan_module.errors import AuditError
from scan_module.logger import configure_logging, get_child_logger
from scan_module.scan_runner import ScanRunner
from scan_module.settings import Config, load_config
from scan_module.status_store import StatusStore
from scan_module.zone_records import ScanResult

load_dotenv()

log = get_child_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="zone-ttl-audit",
        description="Report DNS records whose TTL is below the configured minimum",
    )
    parser.add_argument("config_file", help="YAML configuration (credentials, minTTL, outputs)")
    parser.add_argument("status_file", help="Checkpoint file, created on first run")
    return parser.parse_args(argv)


async def deliver(result: ScanResult, conf: Config) -> str:
    """Format the result and hand it to the enabled output channels."""
    text = format_report(result, conf.min_ttl, include_reverse_index=conf.print_zone_results)

    if conf.print_results:
        log.info("printing results")
        print_results(text)

    if conf.slack_results:
        log.info("sending to slack")
        await SlackNotifier(conf.slack_token, conf.slack_channel_id).post(text)

    return text


async def run(config_file: str, status_file: str) -> ScanResult:
    conf = load_config(config_file)
    configure_logging(verbose=conf.verbose)

    async with DynClient(conf.api_url, timeout=conf.request_timeout, verbose=conf.verbose) as client:
        result = await ScanRunner(conf, client, StatusStore(status_file)).run()

    await deliver(result, conf)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entrypoint.

    Returns:
        0 on success, 1 on a fatal error. Usage errors exit with 2 from argparse.
    """
    args = parse_args(argv)
    configure_logging()

    try:
        asyncio.run(run(args.config_file, args.status_file))
    except AuditError as e:
        log.critical("Audit aborted: {}", e)
        print(f"zone-ttl-audit: {e}", file=sys.stderr)
        return 1
    log.info("done")
    return 0


def cli() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
