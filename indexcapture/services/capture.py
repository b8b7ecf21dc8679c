"""
Snapshot strategies, one artifact file per captured page:
  1. raster: full-page PNG
  2. html:   SingleFile-style self-contained HTML (CSS/images inlined)
"""
from __future__ import annotations

import base64
import html as htmllib
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urljoin

from indexcapture.models import CaptureKind, FetchedResource
from indexcapture.services.automation import PageAutomation

logger = logging.getLogger(__name__)

LINK_TAG = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
STYLE_ATTR = re.compile(r'(\sstyle=)(["\'])(.*?)\2', re.IGNORECASE | re.DOTALL)
HEAD_TAG = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
HTML_TAG = re.compile(r"<html\b[^>]*>", re.IGNORECASE)

_REL_STYLESHEET = re.compile(r'\brel=["\']?[^"\'>]*\bstylesheet\b', re.IGNORECASE)
_HREF = re.compile(r'\bhref=(["\'])(.*?)\1', re.IGNORECASE | re.DOTALL)
_SRC = re.compile(r'(\ssrc=)(["\'])(.*?)\2', re.IGNORECASE | re.DOTALL)
_CSS_URL = re.compile(r'url\(\s*(&quot;|["\']?)(https?://.*?)\1\s*\)', re.IGNORECASE)


def _is_absolute(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def _data_uri(resource: FetchedResource) -> str:
    b64 = base64.b64encode(resource.content).decode()
    return f"data:{resource.content_type};base64,{b64}"


class _ResourceCache:
    """Fetches each URL at most once per capture; failures are remembered as None."""

    def __init__(self, automation: PageAutomation):
        self.automation = automation
        self._seen: dict[str, FetchedResource | None] = {}

    async def get(self, url: str) -> FetchedResource | None:
        if url not in self._seen:
            try:
                self._seen[url] = await self.automation.fetch_resource(url)
            except Exception as exc:
                logger.debug("Inline fetch failed for %s: %s", url, exc)
                self._seen[url] = None
        return self._seen[url]

    def peek(self, url: str) -> FetchedResource | None:
        return self._seen.get(url)


async def inline_resources(markup: str, base_url: str, automation: PageAutomation) -> str:
    """
    Inline external CSS and images as data URIs and pin a <base> to the page URL.
    Anything that fails to fetch keeps its original reference.
    """
    cache = _ResourceCache(automation)

    # <link rel="stylesheet"> → <style>
    stylesheets: dict[str, str] = {}
    for m in LINK_TAG.finditer(markup):
        tag = m.group(0)
        href = _HREF.search(tag)
        if not _REL_STYLESHEET.search(tag) or not href or href.group(2).startswith("data:"):
            continue
        url = urljoin(base_url, htmllib.unescape(href.group(2)))
        resource = await cache.get(url)
        if resource is not None:
            stylesheets[tag] = f"<style>{resource.text}</style>"

    # <img src="http..."> → data URI
    for m in IMG_TAG.finditer(markup):
        src = _SRC.search(m.group(0))
        if src and _is_absolute(htmllib.unescape(src.group(3))):
            await cache.get(htmllib.unescape(src.group(3)))

    # style="background: url(http...)" → data URI
    for m in STYLE_ATTR.finditer(markup):
        for u in _CSS_URL.finditer(m.group(3)):
            await cache.get(htmllib.unescape(u.group(2)))

    def replace_link(m: re.Match[str]) -> str:
        return stylesheets.get(m.group(0), m.group(0))

    def replace_src(m: re.Match[str]) -> str:
        resource = cache.peek(htmllib.unescape(m.group(3)))
        if resource is None:
            return m.group(0)
        return f"{m.group(1)}{m.group(2)}{_data_uri(resource)}{m.group(2)}"

    def replace_img(m: re.Match[str]) -> str:
        return _SRC.sub(replace_src, m.group(0), count=1)

    def replace_css_url(m: re.Match[str]) -> str:
        resource = cache.peek(htmllib.unescape(m.group(2)))
        if resource is None:
            return m.group(0)
        return f"url({m.group(1)}{_data_uri(resource)}{m.group(1)})"

    def replace_style(m: re.Match[str]) -> str:
        return f"{m.group(1)}{m.group(2)}{_CSS_URL.sub(replace_css_url, m.group(3))}{m.group(2)}"

    markup = LINK_TAG.sub(replace_link, markup)
    markup = IMG_TAG.sub(replace_img, markup)
    markup = STYLE_ATTR.sub(replace_style, markup)
    return insert_base(markup, base_url)


def insert_base(markup: str, base_url: str) -> str:
    base = f'<base href="{htmllib.escape(base_url, quote=True)}">'
    head = HEAD_TAG.search(markup)
    if head:
        return markup[: head.end()] + base + markup[head.end():]
    root = HTML_TAG.search(markup)
    if root:
        return markup[: root.end()] + f"<head>{base}</head>" + markup[root.end():]
    return f"<head>{base}</head>" + markup


class SnapshotCapturer(ABC):
    kind: CaptureKind

    @abstractmethod
    async def capture(self, automation: PageAutomation, path: Path) -> None:
        """Render the current page state to `path`, replacing any previous file."""


class RasterCapturer(SnapshotCapturer):
    kind = CaptureKind.RASTER

    async def capture(self, automation: PageAutomation, path: Path) -> None:
        path.write_bytes(await automation.render_image())


class SelfContainedHtmlCapturer(SnapshotCapturer):
    kind = CaptureKind.HTML

    async def capture(self, automation: PageAutomation, path: Path) -> None:
        rendered = await automation.serialize_dom()
        self_contained = await inline_resources(rendered, automation.url, automation)
        path.write_text("<!DOCTYPE html>\n" + self_contained, encoding="utf-8")


def get_capturer(kind: CaptureKind) -> SnapshotCapturer:
    if kind is CaptureKind.HTML:
        return SelfContainedHtmlCapturer()
    return RasterCapturer()
