"""Fetching and parsing of RSS documents."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

import requests


@dataclass(frozen=True)
class RSSItem:
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass(frozen=True)
class RSSFeed:
    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _text(element: ET.Element | None, tag: str) -> str:
    if element is None:
        return ""
    child = element.find(tag)
    return "" if child is None or child.text is None else child.text


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document. Raises ValueError if it is not well-formed XML."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"invalid RSS document: {exc}") from exc
    channel = root.find("channel")
    items = [
        RSSItem(
            title=_text(item, "title"),
            link=_text(item, "link"),
            description=_text(item, "description"),
            pub_date=_text(item, "pubDate"),
        )
        for item in (channel.findall("item") if channel is not None else [])
    ]
    return RSSFeed(
        title=_text(channel, "title"),
        link=_text(channel, "link"),
        description=_text(channel, "description"),
        items=items,
    )


def url_to_feed(url: str, timeout: float = 10.0) -> RSSFeed:
    """Download ``url`` and parse it as an RSS feed."""
    resp = requests.get(url, timeout=timeout)
    return parse_feed(resp.content)