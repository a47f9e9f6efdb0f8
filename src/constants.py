"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    BUNDLE_ERROR = 3


class OutputFormats(Enum):
    """Output formats supported by the CLI.

    Args:
        Enum (string): Output formats supported by the CLI.
    """

    HTML = "html"
    JSON = "json"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_CDN = "https://wzrd.in"
    MULTI_ENDPOINT = "/multi"
    DEFAULT_VERSION = "latest"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    SERVER_ERROR_STATUS = 500
    SUPPORTED_FORMATS = [OutputFormats.HTML.value, OutputFormats.JSON.value]
    DEFAULT_CACHE_FILE = ".modsandbox-cache.json"
    CONFIG_SECTION = "sandbox"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "MODSANDBOX_LOG_LEVEL"
    USER_AGENT = "modsandbox/1.0"

    # Script assembly
    SCRIPT_CLOSE_TAG = "</script>"
    SCRIPT_MIME = "text/javascript"
    BASE_STYLE = "html, body { margin: 0; padding: 0; border: 0; }"
