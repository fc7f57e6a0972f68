#!/usr/bin/env python3
""" J! Archive parser entry points.

This module contains the CLI to download j-archive.com episode pages and to parse them into CSV records. The mode
is chosen with --mode:

    --mode download: Save the episode pages of the seasons given with --seasons (default: the current season) under
        --site-folder, one "season <N>" folder per season. Pages already on disk are not downloaded again.

    --mode parse: Parse every downloaded episode of the seasons given with --seasons (default: every season folder
        found) and save one row per clue to --out.

        --out may be a folder (one j-archive-season-<N>.csv per season, the default "parsed-csv"), an SQLite file
        ending in .db or starting with sqlite:///, or a URI beginning with mongodb://.

    Examples:

        $python3 run.py --mode download --seasons 40,41

            Downloads seasons 40 and 41 to "season-archive".

        $python3 run.py --mode parse --out jtrivia.db

            Parses every downloaded season and saves the clues to the SQLite file "jtrivia.db".

"""
import argparse
import logging
import sys

from jparser import config, JArchiveParser, SeasonDownloader, Sink
from jparser.exceptions import SinkConnectionError, SiteFolderError


def arg_positive_int(value):
    """argparse helper to validate a positive integer passed via command line.
    """

    if not value.strip().isdigit():
        raise argparse.ArgumentTypeError("{} is not a positive integer".format(value))
    val = int(value)
    if val <= 0:
        raise argparse.ArgumentTypeError("{} must be greater than zero".format(value))
    return val


def arg_season_list(value):
    """argparse helper to parse a comma-separated list of season numbers, e.g. "1,2,3".
    """

    return [arg_positive_int(season) for season in value.split(",") if season.strip()]


def build_arg_parser():
    parser = argparse.ArgumentParser()
    parser.add_argument("--mode", choices=["download", "parse"], required=True, help="Download pages or parse them.")
    parser.add_argument("--seasons", type=arg_season_list, default=[], help="Comma-separated list of seasons (e.g., 1,2,3).")
    parser.add_argument("--site-folder", default=config.SITE_FOLDER, help="Folder holding downloaded pages.")
    parser.add_argument("--out", default=config.CSV_FOLDER, help="CSV folder, SQLite file or MongoDB URI to save clues to.")
    parser.add_argument("--threads", type=arg_positive_int, default=config.MAX_THREADS, help="Number of worker threads.")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="Write log messages to this file instead of stderr.")
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), filename=args.log_file,
                        format="%(asctime)s %(threadName)s %(levelname)s %(message)s")

    if args.mode == "download":
        downloader = SeasonDownloader(args.seasons, site_folder=args.site_folder, threads=args.threads)
        downloader.start()
        return 0

    sink = Sink.factory(args.out)
    parser = JArchiveParser(sink, args.seasons, site_folder=args.site_folder, threads=args.threads)
    try:
        parser.start()
    except SinkConnectionError as e:
        print("OUTPUT ERROR: {}".format(e))
        return 1
    except SiteFolderError as e:
        print("INPUT ERROR: {}".format(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
