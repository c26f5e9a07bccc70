#!/usr/bin/env python3
"""
destream CLI - Save videos from Microsoft Stream.

Usage:
    destream -i "https://web.microsoftstream.com/video/VIDEO_ID"
    destream -f videos.txt -o downloads --skip
    destream -i "https://web.microsoftstream.com/group/GROUP_ID" -x
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from destream import __version__
from destream.api.client import ApiClient
from destream.api.metadata import fetch_video_info
from destream.auth.login import interactive_login, refresh_session
from destream.cache.token_cache import TokenCache
from destream.config import defaults
from destream.config.loader import get_config
from destream.config.output_templates import (
    TEMPLATE_ELEMENTS,
    assign_output_paths,
    validate_template,
)
from destream.exceptions import DestreamError, ElevatedShellError, ExitCode, InputError
from destream.operations.download import DownloadSettings, download_videos, simulate_videos
from destream.parsing.input import parse_cli_input, parse_input_file
from destream.tools.ffmpeg import FFmpegTool
from destream.utils.logging import setup_logging
from destream.utils.system import is_elevated

logger = logging.getLogger(__name__)

CODEC_CHOICES = ["copy", "none"]
FORMAT_CHOICES = ["mkv", "mp4"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="destream",
        description="Save videos from Microsoft Stream",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Output template elements: {", ".join("{" + e + "}" for e in TEMPLATE_ELEMENTS)}

Examples:
    %(prog)s -i "https://web.microsoftstream.com/video/VIDEO_ID"
    %(prog)s -i URL1 URL2 -o videos -u user@example.edu
    %(prog)s -f list.txt --skip -k
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-i", "--videoUrls", nargs="+", metavar="URL",
        help="Video or group URLs",
    )
    source.add_argument(
        "-f", "--inputFile", metavar="PATH",
        help='File with one URL per line, optionally followed by -dir="<path>"',
    )

    parser.add_argument(
        "-o", "--outputDirectory", default=defaults.DEFAULT_OUTPUT_DIR,
        help="Directory to save videos in (default: %(default)s)",
    )
    parser.add_argument(
        "-t", "--outputTemplate", default=defaults.DEFAULT_OUTPUT_TEMPLATE,
        help="Output filename template (default: %(default)s)",
    )
    parser.add_argument(
        "-u", "--username", default=os.environ.get("DESTREAM_USERNAME"),
        help="Login username (env: DESTREAM_USERNAME)",
    )
    parser.add_argument(
        "-p", "--password", default=os.environ.get("DESTREAM_PASSWORD"),
        help="Login password (env: DESTREAM_PASSWORD)",
    )
    parser.add_argument(
        "-x", "--simulate", action="store_true",
        help="Resolve videos and print their info without downloading",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print debug output")
    parser.add_argument(
        "--closedCaptions", action="store_true",
        help="Add closed captions to the output when available",
    )
    parser.add_argument(
        "--noCleanup", action="store_true",
        help="Keep partial files after an error or interrupt",
    )
    parser.add_argument(
        "--vcodec", default=defaults.DEFAULT_CODEC, choices=CODEC_CHOICES,
        help="Video codec (default: %(default)s)",
    )
    parser.add_argument(
        "--acodec", default=defaults.DEFAULT_CODEC, choices=CODEC_CHOICES,
        help="Audio codec (default: %(default)s)",
    )
    parser.add_argument(
        "--format", default=defaults.DEFAULT_FORMAT, choices=FORMAT_CHOICES,
        help="Output container (default: %(default)s)",
    )
    parser.add_argument(
        "--skip", action="store_true",
        help="Skip videos whose output file already exists",
    )
    parser.add_argument(
        "-k", "--keepLoginCookies", action="store_true",
        help="Keep the browser profile between runs and refresh the token before each video",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Run a download session. Raises DestreamError on fatal failures."""
    validate_template(args.outputTemplate)

    if is_elevated():
        raise ElevatedShellError()
    FFmpegTool().check_requirements()

    if args.simulate:
        logger.warning("Simulate mode, there will be no video downloaded.")

    config = get_config()
    logger.debug(f"Config loaded from {config.source.value} (root: {config.root_dir})")
    policy = config.login
    store = TokenCache(config.token_cache, config.token_min_validity)
    user_data_dir = config.chrome_data_dir if args.keepLoginCookies else None

    session = store.read() or interactive_login(
        policy.login_url,
        args.username,
        args.password,
        store=store,
        policy=policy,
        user_data_dir=user_data_dir,
    )
    logger.debug(f"API Gateway URL: {session.api_gateway_uri}")
    logger.debug(f"API Gateway version: {session.api_gateway_version}")

    client = ApiClient(session)
    if args.videoUrls:
        logger.info("Parsing video/group urls")
        video_ids, out_dirs = parse_cli_input(args.videoUrls, args.outputDirectory, client)
    else:
        logger.info("Parsing input file")
        video_ids, out_dirs = parse_input_file(args.inputFile, args.outputDirectory, client)

    if not video_ids:
        raise InputError("No valid video URLs to download")
    for video_id, out_dir in zip(video_ids, out_dirs):
        logger.debug(f"{policy.video_url(video_id)} => {out_dir}")

    logger.info("Fetching videos info...")
    videos = fetch_video_info(client, video_ids, args.closedCaptions, config.seconds_per_chunk)
    videos = assign_output_paths(
        videos, out_dirs, args.outputTemplate, args.format, skip=args.skip
    )

    if args.simulate:
        simulate_videos(videos)
        return ExitCode.OK

    def _refresh(video_url: str):
        fresh = refresh_session(
            video_url, store=store, policy=policy, user_data_dir=user_data_dir
        )
        client.set_session(fresh)
        return fresh

    settings = DownloadSettings(
        skip=args.skip,
        keep_session=args.keepLoginCookies,
        no_cleanup=args.noCleanup,
        closed_captions=args.closedCaptions,
        acodec=args.acodec,
        vcodec=args.vcodec,
        seconds_per_chunk=config.seconds_per_chunk,
    )
    download_videos(
        videos,
        session,
        settings,
        refresh=_refresh,
        video_url=policy.video_url,
    )
    return ExitCode.OK


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        code = run(args)
    except DestreamError as e:
        if args.verbose:
            logger.exception(e.message)
            logger.debug(f"Error details: {e.to_dict()}")
        else:
            logger.error(e.message)
        if e.suggestion:
            logger.error(e.suggestion)
        code = e.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted")
        code = ExitCode.INTERRUPTED

    sys.exit(int(code))


if __name__ == "__main__":
    main()
