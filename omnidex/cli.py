"""
Command line entry point.

    omnidex slugs "MC Skydive (5 0 )"
    omnidex resolve "Mage Animation Set (4 18)"
    omnidex scan /assets/Animations --recursive --dry-run
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

from .client import MarketplaceAuth, MarketplaceClient, MarketplaceHttpClient, RequestPacer
from .config import Config, get_config
from .errors import OmnidexError, ScanCancelled
from .logging_config import configure_logging
from .models.asset import LocalAssetDescriptor, ScanLocation
from .models.selectors import load_default_selectors
from .pipeline import (
    AssetEnricher,
    CandidateResolver,
    ManualMatcher,
    MatchConfidenceEngine,
    ScanOrchestrator,
    generate_slug_variations,
)
from .storage import InMemoryAssetStore, MySQLAssetStore


logger = logging.getLogger(__name__)


def build_client(config: Config) -> MarketplaceClient:
    """One pacer and one HTTP session for everything this process does."""
    pacer = RequestPacer(
        referer=config.marketplace.base_url,
        min_delay_ms=config.http.min_delay_ms,
        jitter=config.http.jitter,
    )
    http = MarketplaceHttpClient(pacer, base_url=config.marketplace.base_url, http_config=config.http)
    return MarketplaceClient(
        http,
        selectors=load_default_selectors(config.selectors_path),
        marketplace=config.marketplace,
        http_config=config.http,
    )


def build_store(config: Config, dry_run: bool = False):
    if dry_run:
        logger.info("Dry run: using in-memory asset store")
        return InMemoryAssetStore()
    store = MySQLAssetStore(config.mysql)
    store.init_schema()
    return store


def _print_listing(index: int, listing) -> None:
    price = f"{listing.price:.2f}" if listing.price is not None else "-"
    print(f"{index:>2}. {listing.title or '(untitled)'}  [{listing.slug or '-'}]  price={price}")
    if listing.source_url:
        print(f"    {listing.source_url}")


def cmd_slugs(args, config: Config) -> int:
    for slug in generate_slug_variations(args.name):
        print(slug)
    return 0


async def cmd_resolve(args, config: Config) -> int:
    client = build_client(config)
    try:
        resolution = await CandidateResolver(client).resolve_detailed(args.name)
    finally:
        client.close()

    for name, outcome in resolution.attempts:
        print(f"{name}: {outcome.kind.value} ({outcome.detail})")
    for index, listing in enumerate(resolution.listings, start=1):
        _print_listing(index, listing)
    return 0 if resolution.found else 2


async def cmd_match(args, config: Config) -> int:
    client = build_client(config)
    try:
        candidates = await CandidateResolver(client).resolve(args.name)
    finally:
        client.close()

    engine = MatchConfidenceEngine(config.matching)
    outcome = engine.match(LocalAssetDescriptor(name=args.name, category=args.category), candidates)
    print(f"{outcome.match_type.value}  confidence={outcome.confidence:.3f}")
    if outcome.listing is not None:
        _print_listing(1, outcome.listing)
    for reason in outcome.reasons:
        print(f"  - {reason}")
    return 0 if outcome.is_match else 2


async def cmd_scan(args, config: Config) -> int:
    location = ScanLocation(
        id=args.location_id,
        name=args.path,
        path=args.path,
        recursive=args.recursive or config.scan.recursive,
    )
    client = build_client(config)
    try:
        store = build_store(config, dry_run=args.dry_run)
        enricher = None if args.no_enrich else AssetEnricher(CandidateResolver(client), store)
        summary = await ScanOrchestrator(store, enricher).run(location)
    except ScanCancelled as e:
        logger.warning(str(e))
        return 130
    finally:
        client.close()

    print(
        f"Processed {summary.processed_count}/{summary.total_count} folders, "
        f"enriched {summary.enriched_count}, errors {len(summary.errors)}"
    )
    for error in summary.errors:
        print(f"  ! {error}")
    return 0 if summary.completed_successfully else 1


async def cmd_manual_match(args, config: Config) -> int:
    client = build_client(config)
    try:
        store = build_store(config)
        outcome = await ManualMatcher(CandidateResolver(client), store, config.marketplace).match(args.asset_id, args.url)
    finally:
        client.close()
    print(f"Asset {args.asset_id} matched to '{outcome.listing.title}' ({outcome.match_type.value})")
    return 0


def cmd_reprocess(args, config: Config) -> int:
    client = build_client(config)
    try:
        summary = AssetEnricher(CandidateResolver(client), build_store(config)).reprocess_cached()
    finally:
        client.close()
    print(f"Reprocessed {summary.processed} listing(s), {summary.errors} error(s)")
    return 0 if summary.errors == 0 else 1


async def cmd_check_access(args, config: Config) -> int:
    client = build_client(config)
    try:
        reachable = await client.check_public_access()
    finally:
        client.close()

    auth = MarketplaceAuth(config.marketplace.token)
    print(f"Marketplace {config.marketplace.base_url}: {'reachable' if reachable else 'NOT reachable'}")
    print(f"Authenticated: {'yes' if auth.is_authenticated else 'no'}")
    if not auth.is_authenticated:
        print(auth.instructions())
    return 0 if reachable else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnidex",
        description="Index local asset folders and match them to marketplace listings.",
    )
    parser.add_argument("--log-level", default=None, help="Override OMNIDEX_LOG_LEVEL (DEBUG, INFO, ...)")
    parser.add_argument("--json-logs", action="store_true", help="Structured JSON log lines")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("slugs", help="Show the slug variations generated for a folder name")
    p.add_argument("name")
    p.set_defaults(handler=cmd_slugs)

    p = sub.add_parser("resolve", help="Find marketplace candidates for a folder name")
    p.add_argument("name")
    p.set_defaults(handler=cmd_resolve)

    p = sub.add_parser("match", help="Resolve and score candidates for a folder name")
    p.add_argument("name")
    p.add_argument("--category", default="material", help="Local asset category")
    p.set_defaults(handler=cmd_match)

    p = sub.add_parser("scan", help="Index and enrich the asset folders under PATH")
    p.add_argument("path")
    p.add_argument("--recursive", action="store_true", help="Treat every nested folder as an asset")
    p.add_argument("--location-id", type=int, default=1)
    p.add_argument("--dry-run", action="store_true", help="Use an in-memory store instead of MySQL")
    p.add_argument("--no-enrich", action="store_true", help="Index folders without marketplace lookups")
    p.set_defaults(handler=cmd_scan)

    p = sub.add_parser("manual-match", help="Attach a marketplace product URL to an asset")
    p.add_argument("asset_id", type=int)
    p.add_argument("url")
    p.set_defaults(handler=cmd_manual_match)

    p = sub.add_parser("reprocess", help="Re-parse cached product JSON for every asset")
    p.set_defaults(handler=cmd_reprocess)

    p = sub.add_parser("check-access", help="Check that the marketplace is reachable")
    p.set_defaults(handler=cmd_check_access)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    configure_logging(args.log_level or config.log_level, json_format=args.json_logs or config.json_logs)

    try:
        result = args.handler(args, config)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
        return result
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return 130
    except (OmnidexError, OSError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
