"""modsandbox - bundle a script with its npm dependencies into a sandbox page.

    Returns:
        int: Exit code
"""
import asyncio
import json
import logging
import sys

from constants import Constants, ExitCodes, OutputFormats
from common.logging_utils import configure_logging
from common.http_client import HttpClientError, safe_get
from args import parse_args
from cli_config import ConfigError, SandboxConfig
from bundler import (
    BundleOrchestrator,
    CacheGateway,
    HtmlFileRenderer,
    JsonFileCacheStore,
    MemoryCacheStore,
    RemoteFetcher,
    ScanError,
    ScriptAssembler,
    render_document,
)
from bundler import events
from bundler.errors import CacheReadError

logger = logging.getLogger("modsandbox")


def load_entry(entry):
    """Loads the entry script source.

    Args:
        entry (str): File path, "-" for stdin, or an http(s) URL.

    Raises:
        OSError: If the file cannot be read.
        HttpClientError: If the URL cannot be fetched.

    Returns:
        str: Entry script source.
    """
    if entry == "-":
        return sys.stdin.read()
    if entry.startswith(("http://", "https://")):
        res = safe_get(entry, context="entry")
        if res.status_code != 200:
            raise HttpClientError(f"entry request returned {res.status_code}")
        return res.text
    with open(entry, encoding="utf-8") as file:
        return file.read()


def setup_logging(args):
    """Configures logging from the CLI flags."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def build_orchestrator(config, fetcher, renderer=None):
    """Wires the cache, fetcher and assembler for a CLI run."""
    if config.cache_file:
        store = JsonFileCacheStore(config.cache_file)
    else:
        store = MemoryCacheStore()
    return BundleOrchestrator(
        cache=CacheGateway(store),
        fetcher=fetcher,
        assembler=ScriptAssembler(config.to_options()),
        renderer=renderer,
    )


def report_event(event, payload):
    """Event sink printing progress to the log and errors to stderr."""
    if event == events.BUNDLE_START:
        logger.info("Bundling...")
    elif event == events.MODULES:
        names = [f"{p.get('name', '?')}@{p.get('version', '?')}" for p in payload]
        logger.info("Modules: %s", ", ".join(names) if names else "(none)")
    elif event == events.BUNDLE_ERROR:
        sys.stderr.write(f"Bundling failed: {payload}\n")
    elif event == events.BUNDLE_END and payload is not None:
        logger.info("Bundle ready (%d chars)", len(payload.script))


def write_output(outcome, output_format, path):
    """Writes the bundle result to a file or stdout."""
    if output_format == OutputFormats.JSON.value:
        text = json.dumps(
            {"payload": outcome.payload.to_dict(), "packages": outcome.bundle.packages},
            indent=2,
        )
    else:
        text = render_document(outcome.payload)
    if path:
        with open(path, "w", encoding="utf-8") as file:
            file.write(text)
    else:
        sys.stdout.write(text)


async def run(args, config, entry_source):
    """Runs one bundle() call and writes its result.

    Returns:
        int: Exit code
    """
    html_to_file = args.OUTPUT and args.OUTPUT_FORMAT == OutputFormats.HTML.value
    renderer = HtmlFileRenderer(args.OUTPUT) if html_to_file else None

    async with RemoteFetcher(config.cdn, timeout=config.timeout) as fetcher:
        orchestrator = build_orchestrator(config, fetcher, renderer)
        outcome = await orchestrator.bundle(
            entry_source, config.preferred_versions, sink=report_event
        )

    if outcome.error is not None:
        if isinstance(outcome.error, CacheReadError):
            sys.stderr.write(f"Cache unavailable: {outcome.error}\n")
            return ExitCodes.FILE_ERROR.value
        return ExitCodes.BUNDLE_ERROR.value

    if outcome.cache_error is not None:
        logger.warning("Bundle was not cached: %s", outcome.cache_error)

    if not html_to_file:
        write_output(outcome, args.OUTPUT_FORMAT, args.OUTPUT)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)

    try:
        config = SandboxConfig.from_args(args)
    except ConfigError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    try:
        entry_source = load_entry(args.entry)
    except HttpClientError as e:
        logging.error("Could not fetch entry script: %s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except OSError as e:
        logging.error("Could not read entry script: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    logger.debug("Using bundling service %s%s", config.cdn, Constants.MULTI_ENDPOINT)
    try:
        code = asyncio.run(run(args, config, entry_source))
    except ScanError as e:
        logging.error("Could not scan entry script: %s", e)
        code = ExitCodes.BUNDLE_ERROR.value
    except OSError as e:
        logging.error("Could not write output: %s", e)
        code = ExitCodes.FILE_ERROR.value
    sys.exit(code)


if __name__ == "__main__":
    main()
