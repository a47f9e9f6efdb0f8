"""Builds the delivery payload handed to the renderer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from constants import Constants
from specifier import encode_token

logger = logging.getLogger(__name__)


@dataclass
class SandboxOptions:
    """Markup and isolation settings for the execution surface."""

    name: Optional[str] = None
    iframe_head: str = ""
    iframe_body: str = ""
    iframe_style: str = ""
    iframe_sandbox: str = ""


@dataclass
class DeliveryPayload:
    """Everything the renderer needs to mount the assembled script."""

    head: str
    body: str
    script: str
    sandbox_attributes: str = ""
    name: Optional[str] = None
    inline: bool = True  # False when delivered as a data: URI

    def to_dict(self) -> Dict[str, Any]:
        html: Dict[str, Any] = {
            "head": self.head,
            "body": self.body,
            "script": self.script,
            "sandboxAttributes": self.sandbox_attributes,
        }
        if self.name:
            html["name"] = self.name
        return html


class Renderer(Protocol):
    """Mounts a payload on an isolated execution surface."""

    def set_html(self, payload: DeliveryPayload) -> None:
        ...


class ScriptAssembler:
    """Wraps merged bundles plus entry code and picks the script encoding."""

    def __init__(self, options: Optional[SandboxOptions] = None):
        self._options = options or SandboxOptions()

    @property
    def options(self) -> SandboxOptions:
        return self._options

    @staticmethod
    def wrap(script: str) -> str:
        """Defer execution by one tick.

        Freshly attached frames report wrong innerWidth/innerHeight until
        after the current task, even after DOMContentLoaded.
        """
        return "setTimeout(function(){\n;" + script + "\n;}, 0)"

    @staticmethod
    def script_tag(wrapped: str) -> str:
        """Inline the script unless it contains a closing script tag."""
        if Constants.SCRIPT_CLOSE_TAG not in wrapped:
            return f'<script type="{Constants.SCRIPT_MIME}">{wrapped}</script>'
        return (
            f'<script type="{Constants.SCRIPT_MIME}" '
            f'src="data:{Constants.SCRIPT_MIME};charset=UTF-8,{encode_token(wrapped)}"></script>'
        )

    def style_block(self) -> str:
        return (
            "<style type='text/css'>"
            + Constants.BASE_STYLE
            + "\n"
            + self._options.iframe_style
            + "</style>"
        )

    def assemble(self, bundle_text: str, entry_source: str) -> DeliveryPayload:
        """Combine ``bundle_text`` and ``entry_source`` into a DeliveryPayload."""
        wrapped = self.wrap((bundle_text or "") + entry_source)
        tag = self.script_tag(wrapped)
        inline = Constants.SCRIPT_CLOSE_TAG not in wrapped
        logger.debug(
            "Assembled script (%d chars, %s)", len(wrapped), "inline" if inline else "data-uri"
        )
        return DeliveryPayload(
            head=self._options.iframe_head + self.style_block(),
            body=self._options.iframe_body + tag,
            script=wrapped,
            sandbox_attributes=self._options.iframe_sandbox,
            name=self._options.name,
            inline=inline,
        )


def render_document(payload: DeliveryPayload) -> str:
    """Render a payload as a standalone HTML document."""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><meta charset=\"utf-8\">{payload.head}</head>\n"
        f"<body>{payload.body}</body>\n"
        "</html>\n"
    )


class HtmlFileRenderer:
    """Renderer writing the payload to an HTML file."""

    def __init__(self, path: str):
        self._path = path

    def set_html(self, payload: DeliveryPayload) -> None:
        with open(self._path, "w", encoding="utf-8") as f:
            f.write(render_document(payload))
        logger.info("Wrote sandbox document to %s", self._path)
