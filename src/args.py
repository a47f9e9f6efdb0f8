"""Argument parsing functionality for modsandbox."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="modsandbox",
        description=(
            "modsandbox - Bundle a script with its npm dependencies into a runnable sandbox page"
        ),
        add_help=True,
    )

    parser.add_argument("entry",
                        metavar="ENTRY",
                        help="Entry script: a file path, '-' for stdin, or an http(s) URL")

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--cdn",
                        dest="CDN",
                        help=f"Base URL of the bundling service (default: {Constants.DEFAULT_CDN})",
                        action="store",
                        type=str)

    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument("--cache-file",
                             dest="CACHE_FILE",
                             help=f"Bundle cache file (default: {Constants.DEFAULT_CACHE_FILE})",
                             action="store",
                             type=str)
    cache_group.add_argument("--no-cache",
                             dest="NO_CACHE",
                             help="Keep the bundle cache in memory only",
                             action="store_true")

    parser.add_argument("-p", "--prefer",
                        dest="PREFER",
                        help="Preferred version for a versionless require (NAME=VERSION, repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (defaults to stdout)",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format: html document or json payload (default: html)",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_FORMATS,
                        default="html")
    parser.add_argument("--name",
                        dest="NAME",
                        help="Name attribute for the sandbox frame",
                        action="store",
                        type=str)
    parser.add_argument("--sandbox",
                        dest="SANDBOX",
                        help="Sandbox attributes for the frame, e.g. 'allow-scripts'",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Request timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store",
                        type=int)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
