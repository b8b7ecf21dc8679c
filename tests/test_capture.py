import asyncio
import base64

from indexcapture.models import CaptureKind
from indexcapture.services.capture import (
    RasterCapturer,
    SelfContainedHtmlCapturer,
    get_capturer,
    inline_resources,
    insert_base,
)
from tests.fakes import FakeAutomation

PAGE_URL = "https://www.onvista.de/index/einzelwerte/DAX-Index-20735"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def test_get_capturer_selects_strategy():
    assert isinstance(get_capturer(CaptureKind.RASTER), RasterCapturer)
    assert isinstance(get_capturer(CaptureKind.HTML), SelfContainedHtmlCapturer)


def test_raster_capture_overwrites(tmp_path):
    automation = FakeAutomation()
    automation._url = PAGE_URL
    path = tmp_path / "page1.png"
    path.write_bytes(b"stale content that is longer than the new one")

    asyncio.run(RasterCapturer().capture(automation, path))
    asyncio.run(RasterCapturer().capture(automation, path))

    assert path.read_bytes() == f"png:{PAGE_URL}:1".encode()


def test_stylesheet_link_becomes_style_block():
    markup = '<html><head><link rel="stylesheet" href="/css/app.css"></head><body></body></html>'
    automation = FakeAutomation(resources={"https://www.onvista.de/css/app.css": ("text/css", b"td{color:red}")})

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))

    assert "<style>td{color:red}</style>" in out
    assert "<link" not in out


def test_absolute_image_becomes_data_uri():
    markup = '<body><img alt="logo" src="https://cdn.example.com/logo.png"></body>'
    automation = FakeAutomation(resources={"https://cdn.example.com/logo.png": ("image/png", b"\x89PNG")})

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))
    encoded = b64(b"\x89PNG")

    assert f'src="data:image/png;base64,{encoded}"' in out
    assert 'alt="logo"' in out


def test_relative_image_is_left_alone():
    markup = '<body><img src="/img/flag.png"></body>'
    automation = FakeAutomation()

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))

    assert '<img src="/img/flag.png">' in out
    assert automation.fetched == []


def test_inline_style_background_url():
    markup = '<div style="background-image: url(&quot;https://cdn.example.com/bg.gif&quot;);"></div>'
    automation = FakeAutomation(resources={"https://cdn.example.com/bg.gif": ("image/gif", b"GIF89a")})

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))

    assert f"url(&quot;data:image/gif;base64,{b64(b'GIF89a')}&quot;)" in out


def test_failed_fetches_keep_original_reference():
    markup = (
        '<head><link rel="stylesheet" href="https://cdn.example.com/gone.css"></head>'
        '<body><img src="https://cdn.example.com/gone.png"></body>'
    )
    automation = FakeAutomation()

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))

    assert '<link rel="stylesheet" href="https://cdn.example.com/gone.css">' in out
    assert '<img src="https://cdn.example.com/gone.png">' in out


def test_repeated_resource_fetched_once():
    markup = '<img src="https://cdn.example.com/a.png"><img src="https://cdn.example.com/a.png">'
    automation = FakeAutomation(resources={"https://cdn.example.com/a.png": ("image/png", b"a")})

    out = asyncio.run(inline_resources(markup, PAGE_URL, automation))

    assert automation.fetched == ["https://cdn.example.com/a.png"]
    assert out.count("data:image/png;base64,") == 2


def test_base_inserted_into_head():
    out = insert_base('<html><head lang="de"><title>x</title></head></html>', PAGE_URL)
    assert out.startswith(f'<html><head lang="de"><base href="{PAGE_URL}"><title>x</title>')


def test_base_added_when_head_missing():
    out = insert_base("<html><body></body></html>", PAGE_URL)
    assert out == f'<html><head><base href="{PAGE_URL}"></head><body></body></html>'


def test_html_capture_writes_doctype_and_base(tmp_path):
    automation = FakeAutomation(dom="<html><head></head><body><table></table></body></html>")
    automation._url = PAGE_URL
    path = tmp_path / "page1.html"

    asyncio.run(SelfContainedHtmlCapturer().capture(automation, path))
    asyncio.run(SelfContainedHtmlCapturer().capture(automation, path))

    text = path.read_text(encoding="utf-8")
    assert text.startswith("<!DOCTYPE html>\n<html><head>")
    assert text.count("<base ") == 1
    assert f'<base href="{PAGE_URL}">' in text
