import pytest
import responses

from rssagg.rss import RSSItem, parse_feed, url_to_feed

DOC = b"""<?xml version="1.0"?>
<rss version="2.0"><channel>
<title>Blog</title><link>http://example.com/</link><description>d</description>
<item><title>One</title><link>http://example.com/1</link>
<description>first</description><pubDate>Mon, 02 Jan 2006 15:04:05 GMT</pubDate></item>
<item><title>Two</title><link>http://example.com/2</link></item>
</channel></rss>"""


def test_parse_channel_fields():
    feed = parse_feed(DOC)
    assert feed.title == "Blog"
    assert feed.link == "http://example.com/"
    assert len(feed.items) == 2


def test_parse_items_with_missing_fields():
    feed = parse_feed(DOC)
    assert feed.items[0] == RSSItem("One", "http://example.com/1", "first",
                                    "Mon, 02 Jan 2006 15:04:05 GMT")
    assert feed.items[1].description == ""
    assert feed.items[1].pub_date == ""


def test_no_channel_gives_empty_feed():
    feed = parse_feed("<rss></rss>")
    assert feed.items == []
    assert feed.title == ""


def test_invalid_xml_raises():
    with pytest.raises(ValueError):
        parse_feed(b"<rss><channel>")


def test_url_to_feed():
    with responses.RequestsMock() as mock:
        mock.add(responses.GET, "http://example.com/feed.xml", body=DOC)
        feed = url_to_feed("http://example.com/feed.xml")
    assert [i.title for i in feed.items] == ["One", "Two"]