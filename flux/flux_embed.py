"""
Runs Flux scripts embedded in an HTML host document.

Every `<flux>...</flux>` element's text content is one script. Each script
runs with its own ScriptRunner (and so its own environment); a failing block
is logged and does not stop the blocks after it.
"""
from __future__ import annotations

import logging
from html.parser import HTMLParser
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from flux.flux_runtime import ExecutionResult, ScriptRunner

logger = logging.getLogger("flux")

FLUX_TAG = "flux"


class _FluxBlockParser(HTMLParser):
    """Collect the text content of every <flux> element, in document order.

    Nested <flux> elements are reported separately and their text also
    counts toward the enclosing element, like the DOM's textContent.
    """
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.blocks: List[Optional[str]] = []
        self._open: List[tuple[int, List[str]]] = []

    def handle_starttag(self, tag, attrs):
        if tag.lower() == FLUX_TAG:
            self.blocks.append(None)
            self._open.append((len(self.blocks) - 1, []))

    def handle_endtag(self, tag):
        if tag.lower() == FLUX_TAG and self._open:
            self._finish(*self._open.pop())

    def handle_data(self, data):
        for _, parts in self._open:
            parts.append(data)

    def close(self):
        super().close()
        # Unclosed elements end at the end of the document
        while self._open:
            self._finish(*self._open.pop())

    def _finish(self, index: int, parts: List[str]):
        self.blocks[index] = "".join(parts)


def find_flux_blocks(html: str) -> List[str]:
    """Return the source text of every <flux> block in `html`."""
    p = _FluxBlockParser()
    p.feed(html)
    p.close()
    return list(p.blocks)


def load_document(locator: str, *, client: Optional[httpx.Client] = None, timeout: float = 5.0) -> str:
    """Read a host document from a local path, a file:// locator or an http(s) URL."""
    if locator.startswith(("http://", "https://")):
        if client is not None:
            resp = client.get(locator)
        else:
            with httpx.Client(timeout=timeout, follow_redirects=True) as c:
                resp = c.get(locator)
        resp.raise_for_status()
        return resp.text
    if locator.startswith("file://"):
        locator = locator[len("file://"):]
    return Path(locator).read_text(encoding="utf-8")


def run_document(html: str, runner_factory: Callable[[], ScriptRunner] = ScriptRunner) -> List[ExecutionResult]:
    """Run each <flux> block of `html` independently and return every result."""
    results = []
    for index, source in enumerate(find_flux_blocks(html)):
        runner = runner_factory()
        result = runner.handle_script(source)
        if result.status == 'error':
            logger.error("Flux error: %s", result.format_error())
        else:
            logger.debug("flux block %d ran", index)
        results.append(result)
    return results
