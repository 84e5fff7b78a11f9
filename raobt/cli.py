"""
Command-line interface for raobt.

Provides commands for:
- Downloading the RAOB station listing
- Searching the listing for a sounding station
- Exporting soundings to a CALMET UP.DAT file
"""

import argparse
import logging
import sys
from typing import List, Optional

import raobt.raobtmetadata as metadata
from raobt import __version__
from raobt.availability import summarize_availability
from raobt.errors import InvalidArgument, RaobtError
from raobt.selection import ByCombinedId, CandidateList, StationSelector
from raobt.soundings import fetch_sounding_profiles, read_fsl_file
from raobt.stations import get_sounding_stations, load_station_catalog, save_station_catalog
from raobt.updat import DEFAULT_PRODUCER, export_data_to_calmet, window_time

logger = logging.getLogger(__name__)

_CRITERIA = (
    ('--id', 'id_by_wban_wmo', str, "WBAN-WMO identifier, e.g. 14735-72518"),
    ('--name', 'search_station_name', str, "text contained in the station name"),
    ('--init', 'search_init', str, "station initials"),
    ('--wban', 'search_wban', str, "WBAN number"),
    ('--wmo', 'search_wmo', str, "WMO number"),
    ('--region', 'search_region', str, "two-character province/state code"),
    ('--country', 'search_country', str, "two-character country code"),
    ('--lower-lat', 'lower_lat', float, "southern edge of the bounding box"),
    ('--upper-lat', 'upper_lat', float, "northern edge of the bounding box"),
    ('--lower-lon', 'lower_lon', float, "western edge of the bounding box"),
    ('--upper-lon', 'upper_lon', float, "eastern edge of the bounding box"),
    ('--lower-elev', 'lower_elev', float, "minimum station elevation (m)"),
    ('--upper-elev', 'upper_elev', float, "maximum station elevation (m)"),
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def run_stations(args: argparse.Namespace) -> int:
    """Download the station listing and optionally save it."""
    catalog = get_sounding_stations(url=args.url, timeout=args.timeout, strict=args.strict)
    print(f"{len(catalog)} sounding stations available")
    if args.output:
        path = save_station_catalog(catalog, args.output)
        print(f"Station list saved to: {path}")
    return 0


def run_select(args: argparse.Namespace) -> int:
    """Search the station listing."""
    if args.catalog:
        catalog = load_station_catalog(args.catalog)
    else:
        catalog = get_sounding_stations(url=args.url, timeout=args.timeout)

    criteria = {dest: getattr(args, dest) for _, dest, _, _ in _CRITERIA if getattr(args, dest) is not None}
    result = StationSelector(catalog).select(**criteria)

    print(result.message)
    if isinstance(result, CandidateList):
        print(result.to_dataframe().to_string(index=False))
    return 0


def run_export(args: argparse.Namespace) -> int:
    """Export soundings to an UP.DAT file."""
    if args.fsl_file:
        profiles = read_fsl_file(args.fsl_file)
    else:
        if args.all_times:
            raise InvalidArgument("--all-times needs --fsl-file; downloads need an explicit window")
        if None in (args.start_date, args.start_hour, args.end_date, args.end_hour):
            raise InvalidArgument("--start-date, --start-hour, --end-date and --end-hour are required")
        wmo = ByCombinedId.parse(args.station).wmo
        profiles = fetch_sounding_profiles(wmo,
                                           window_time(args.start_date, args.start_hour),
                                           window_time(args.end_date, args.end_hour),
                                           url=args.url, timeout=args.timeout)

    summary = summarize_availability(profiles)
    logger.info(f"{summary['num_total_soundings']} soundings available from "
                f"{summary['first_time']} to {summary['last_time']}")

    path = export_data_to_calmet(profiles,
                                 start_date=args.start_date,
                                 start_hour=args.start_hour,
                                 end_date=args.end_date,
                                 end_hour=args.end_hour,
                                 top_pressure_level=args.top_pressure,
                                 output_file_name=args.output,
                                 details_in_file_name=not args.no_details,
                                 export_all_times=args.all_times,
                                 producer=args.producer)
    print(f"An UP.DAT file was generated: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raobt",
        description="raobt: RAOB sounding stations and CALMET UP.DAT export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Save the current station listing
    raobt stations --output stations.csv

    # Find stations in Canada
    raobt select --catalog stations.csv --country CA

    # UP.DAT for January 2013 at Albany, NY, up to 500 hPa
    raobt export --station 14735-72518 --start-date 2013-01-01 --start-hour 0 \\
        --end-date 2013-01-31 --end-hour 12 --top-pressure 500
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"raobt {__version__}")
    parser.add_argument("--url", default=metadata.RAOB_CGI_URL, help="RAOB archive query page")
    parser.add_argument("--timeout", type=float, default=metadata.REQUEST_TIMEOUT,
                        help="HTTP timeout in seconds")

    subparsers = parser.add_subparsers(dest="command", required=True)

    stations = subparsers.add_parser("stations", help="Download the station listing")
    stations.add_argument("-o", "--output", help="Optionally cache the listing in this csv file")
    stations.add_argument("--strict", action="store_true", help="Fail on the first unparseable line")
    stations.set_defaults(func=run_stations)

    select = subparsers.add_parser("select", help="Search for a sounding station")
    select.add_argument("--catalog", help="Optional station csv cached by 'raobt stations --output' (downloaded if omitted)")
    for flag, dest, kind, help_text in _CRITERIA:
        select.add_argument(flag, dest=dest, type=kind, help=help_text)
    select.set_defaults(func=run_select)

    export = subparsers.add_parser("export", help="Write a CALMET UP.DAT file")
    source = export.add_mutually_exclusive_group(required=True)
    source.add_argument("--station", help="WBAN-WMO identifier of the station to download")
    source.add_argument("--fsl-file", help="Local FSL format sounding file")
    export.add_argument("--start-date", help="First day, YYYY-MM-DD")
    export.add_argument("--start-hour", type=int, help="Hour of the first day")
    export.add_argument("--end-date", help="Last day, YYYY-MM-DD")
    export.add_argument("--end-hour", type=int, help="Hour of the last day")
    export.add_argument("--all-times", action="store_true", help="Export every sounding of the file")
    export.add_argument("--top-pressure", type=float, required=True, help="Top pressure level (hPa)")
    export.add_argument("-o", "--output", default="up.txt", help="Output file name")
    export.add_argument("--no-details", action="store_true",
                        help="Do not append the window and top level to the file name")
    export.add_argument("--producer", default=DEFAULT_PRODUCER, help="Producer named in the header")
    export.set_defaults(func=run_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return args.func(args)
    except RaobtError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
