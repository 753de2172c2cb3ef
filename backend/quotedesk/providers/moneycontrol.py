from __future__ import annotations

import html
import json
import logging
import re
from typing import Mapping
from urllib.parse import quote

import httpx

from quotedesk.providers.base import get_response, to_float
from quotedesk.schemas.quote import IndexRecord, QuoteRecord


logger = logging.getLogger(__name__)

_SEARCH_PATH = "/mccode/common/autosuggestion_solr.php"
_QUOTE_PATH = "/india/stockpricequote/{symbol}"
_INDICES_PATH = "/markets/indian-indices/"

HTML_TAG_RE = re.compile(r"<[^>]+>")


def _element_re(attribute: str, value: str, tag: str = r"[a-z0-9]+") -> re.Pattern[str]:
    return re.compile(
        rf"<(?P<tag>{tag})\b[^>]*\b{attribute}=\"(?:[^\"]*\s)?{value}(?:\s[^\"]*)?\"[^>]*>(?P<body>.*?)</(?P=tag)>",
        re.IGNORECASE | re.DOTALL,
    )


def _first_span_re(attribute: str, value: str) -> re.Pattern[str]:
    return re.compile(
        rf"<[a-z0-9]+\b[^>]*\b{attribute}=\"(?:[^\"]*\s)?{value}(?:\s[^\"]*)?\"[^>]*>\s*<span[^>]*>(?P<body>.*?)</span>",
        re.IGNORECASE | re.DOTALL,
    )


COMPANY_NAME_PATTERNS = [
    re.compile(r"class=\"[^\"]*\bcomp_title\b[^\"]*\"[^>]*>.*?<h1[^>]*>(?P<body>.*?)</h1>", re.IGNORECASE | re.DOTALL),
    _element_re("class", "company_name"),
]
PRICE_PATTERNS = [
    _first_span_re("class", "inprice1"),
    _element_re("class", "inprice1"),
    _element_re("id", "nsecp"),
    _first_span_re("class", "pcstkspr"),
]
CHANGE_PATTERNS = [
    _element_re("class", "nsechange"),
    _element_re("id", "nsechange"),
]
PERCENT_CHANGE_PATTERNS = [
    _element_re("class", "nsepp"),
    _element_re("id", "nsepchange"),
]
INDICES_TABLE_PATTERNS = [
    _element_re("id", "indicesTable", tag="table"),
    _element_re("class", "tbldata", tag="table"),
]
ROW_RE = re.compile(r"<tr\b[^>]*>(?P<body>.*?)</tr>", re.IGNORECASE | re.DOTALL)
CELL_RE = re.compile(r"<td\b[^>]*>(?P<body>.*?)</td>", re.IGNORECASE | re.DOTALL)


def element_text(fragment: str) -> str:
    return " ".join(html.unescape(HTML_TAG_RE.sub(" ", fragment)).split())


def first_text(document: str, patterns: list[re.Pattern[str]]) -> str | None:
    """Return the text of the first pattern that matches with a non-empty body."""
    for pattern in patterns:
        for match in pattern.finditer(document):
            text = element_text(match.group("body"))
            if text:
                return text
    return None


def parse_quote_page(document: str, symbol: str) -> QuoteRecord:
    company_name = first_text(document, COMPANY_NAME_PATTERNS) or symbol
    return QuoteRecord(
        symbol=symbol,
        company_name=company_name,
        price=to_float(first_text(document, PRICE_PATTERNS)),
        change=to_float(first_text(document, CHANGE_PATTERNS)),
        percent_change=to_float(first_text(document, PERCENT_CHANGE_PATTERNS)),
        source=MoneyControlClient.name,
    )


def parse_indices_page(document: str, tracked_names: set[str] | None = None) -> list[IndexRecord]:
    records: list[IndexRecord] = []
    for pattern in INDICES_TABLE_PATTERNS:
        for table in pattern.finditer(document):
            for row in ROW_RE.finditer(table.group("body")):
                cells = [element_text(cell.group("body")) for cell in CELL_RE.finditer(row.group("body"))]
                # Header rows use <th> and produce no cells.
                if len(cells) < 3 or not cells[0]:
                    continue
                if tracked_names is not None and cells[0].casefold() not in tracked_names:
                    continue
                records.append(
                    IndexRecord(
                        name=cells[0],
                        value=to_float(cells[1]),
                        change=to_float(cells[2]),
                        percent_change=to_float(cells[3]) if len(cells) > 3 else None,
                        source=MoneyControlClient.name,
                    )
                )
        if records:
            break
    return records


class MoneyControlClient:
    name = "MoneyControl"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://www.moneycontrol.com",
        user_agent: str | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent} if user_agent else None

    async def _quote_url(self, symbol: str) -> str:
        response = await get_response(
            self._client,
            self.name,
            self._base_url + _SEARCH_PATH,
            params={"q": symbol, "type": "1"},
            headers=self._headers,
        )
        try:
            suggestions = json.loads(response.text.strip())
        except ValueError:
            logger.warning("MoneyControl search result for %s is not JSON", symbol)
            suggestions = None
        if isinstance(suggestions, list) and suggestions and isinstance(suggestions[0], dict):
            link = suggestions[0].get("link_src")
            if isinstance(link, str) and link:
                return link
        return self._base_url + _QUOTE_PATH.format(symbol=quote(symbol))

    async def fetch_quote(self, symbol: str) -> QuoteRecord:
        url = await self._quote_url(symbol)
        response = await get_response(self._client, self.name, url, headers=self._headers)
        return parse_quote_page(response.text, symbol)

    async def fetch_indices(self, indices: Mapping[str, str]) -> list[IndexRecord]:
        response = await get_response(
            self._client, self.name, self._base_url + _INDICES_PATH, headers=self._headers
        )
        tracked = {name.casefold() for name in indices} if indices else None
        return parse_indices_page(response.text, tracked)
