"""Extract candidate link targets from HTML."""

from typing import Iterator

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

from sitemirror.errors import HtmlParseError

LINK_SELECTOR = "a[href]"


def parse_document(document: str) -> BeautifulSoup:
    """Parse HTML with lxml. Raises HtmlParseError when the parser rejects the markup."""
    try:
        return BeautifulSoup(document, "lxml")
    except ParserRejectedMarkup as e:
        raise HtmlParseError(f"Failed to parse document: {e}") from e


def iter_hrefs(soup: BeautifulSoup) -> Iterator[str]:
    """Raw href attribute values of every <a href> in document order."""
    for a in soup.select(LINK_SELECTOR):
        href = a.get("href")
        if href:
            yield href


def find_hrefs(document: str) -> Iterator[str]:
    """Parse document and return a lazy sequence of raw hrefs."""
    return iter_hrefs(parse_document(document))
