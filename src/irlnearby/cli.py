"""
irlnearby CLI entrypoint.

Handy for local debugging without the web front end:
- `nearby`: run a proximity search for one person against a snapshot
- `geocode`: geocode a single address
- `backfill`: geocode every address in a snapshot that has no coordinates yet
"""

from __future__ import annotations

import argparse
import json

from irlnearby.config.settings import get_settings
from irlnearby.core.logging import configure_logging
from irlnearby.directory.store import InMemoryDirectory, load_snapshot, save_snapshot
from irlnearby.domain.models import CurrentActor
from irlnearby.errors import GeocodingError, ProximityCancelled, UpstreamUnavailable
from irlnearby.geocoding.nominatim import NominatimGeocoder, backfill_coordinates
from irlnearby.proximity.service import ProximityService


def _cmd_nearby(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        directory = InMemoryDirectory.from_path(args.snapshot or settings.directory.snapshot_path)
    except UpstreamUnavailable as e:
        print(f"error: {e}")
        return 1
    service = ProximityService(directory, settings=settings.proximity)
    actor = CurrentActor(person_id=args.person_id, is_system_admin=bool(args.admin))
    try:
        result = service.find_nearby(actor, args.radius)
    except ProximityCancelled as e:
        print(f"error: {e}")
        return 1

    if args.json:
        print(json.dumps(result.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0

    if result.reference_point_count == 0:
        print("No reference location: add an address or join a group that has one.")
        return 0
    print(f"reference points: {result.reference_point_count}")
    for r in result.persons:
        p = r.entity
        print(f"  person {p.id:>5}  {r.distance_miles:8.3f} mi  {p.first_name} {p.last_name} ({p.display_id})")
    for r in result.groups:
        g = r.entity
        print(f"  group  {g.id:>5}  {r.distance_miles:8.3f} mi  {g.name} ({g.display_id})")
    if not result.persons and not result.groups:
        print("  nothing within the radius")
    return 0


def _cmd_geocode(args: argparse.Namespace) -> int:
    geocoder = NominatimGeocoder(get_settings().geocoding)
    try:
        coord = geocoder.geocode(args.address)
    except GeocodingError as e:
        print(f"error: {e}")
        return 1
    print(f"{coord.latitude},{coord.longitude}")
    return 0


def _cmd_backfill(args: argparse.Namespace) -> int:
    settings = get_settings()
    source = args.snapshot or settings.directory.snapshot_path
    snapshot = load_snapshot(source)
    updated, report = backfill_coordinates(snapshot, NominatimGeocoder(settings.geocoding), force=bool(args.force))
    out = save_snapshot(updated, args.output or source)
    print(json.dumps({**report.as_dict(), "output": str(out)}, ensure_ascii=False))
    return 0 if not report.failed else 2


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argparse parser."""
    parser = argparse.ArgumentParser(prog="irlnearby")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    nearby = sub.add_parser("nearby", help="Find persons and groups near a person")
    nearby.add_argument("--person-id", type=int, required=True)
    nearby.add_argument("--admin", action="store_true", help="Search as a system admin (includes private addresses)")
    nearby.add_argument("--radius", type=float, default=None, help="Radius in miles (default from settings)")
    nearby.add_argument("--snapshot", default=None, help="Directory snapshot JSON path")
    nearby.add_argument("--json", action="store_true", help="Print the raw response JSON")
    nearby.set_defaults(func=_cmd_nearby)

    geocode = sub.add_parser("geocode", help="Geocode one address")
    geocode.add_argument("address")
    geocode.set_defaults(func=_cmd_geocode)

    backfill = sub.add_parser("backfill", help="Geocode snapshot addresses that lack coordinates")
    backfill.add_argument("--snapshot", default=None, help="Directory snapshot JSON path")
    backfill.add_argument("--output", default=None, help="Write here instead of overwriting the snapshot")
    backfill.add_argument("--force", action="store_true", help="Re-geocode addresses that already have coordinates")
    backfill.set_defaults(func=_cmd_backfill)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI main function (returns a process exit code)."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
