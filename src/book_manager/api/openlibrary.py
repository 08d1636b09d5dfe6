"""Open Library search client.

Wraps the public search endpoint into a single best-match lookup used by
the extractor's searchBook tool.
"""

import httpx
from loguru import logger

from ..errors import BookLookupError
from ..models import SearchResult

SEARCH_URL = "https://openlibrary.org/search.json"
SEARCH_FIELDS = "title_suggest,author_name,first_publish_year"

log = logger.bind(stage="search")


def search(
    query: str,
    timeout: float = 30.0,
    user_agent: str = "BookManager/1.0",
) -> SearchResult | None:
    """Search Open Library, return the best match or None if nothing matched.

    Raises BookLookupError if the service is unreachable or the response
    can't be coerced into a SearchResult.
    """
    log.info(f"Searching for book {query!r}")

    params = {
        "q": query,
        "limit": "1",
        "fields": SEARCH_FIELDS,
    }

    try:
        resp = httpx.get(
            SEARCH_URL,
            params=params,
            headers={"User-Agent": user_agent},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as e:
        log.warning(f"Open Library API error: {e}")
        raise BookLookupError(f"Open Library request failed: {e}") from e
    except ValueError as e:
        raise BookLookupError(f"Open Library returned invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise BookLookupError("Open Library returned an unexpected payload")

    docs = data.get("docs") or []
    if not data.get("numFound") or not docs:
        log.debug(f"No match for {query!r}")
        return None

    result = _parse_doc(docs[0])
    log.debug(f"Open Library match: {result}")
    return result


def _parse_doc(doc: dict) -> SearchResult:
    """Coerce one raw search doc into the canonical SearchResult shape."""
    if not isinstance(doc, dict):
        raise BookLookupError("Open Library doc is not an object")

    title = doc.get("title_suggest")
    if not isinstance(title, str) or not title.strip():
        raise BookLookupError("Open Library doc has no title_suggest")

    authors = doc.get("author_name") or []
    if not isinstance(authors, list):
        raise BookLookupError("Open Library author_name is not a list")
    author = authors[0] if authors else "Unknown"

    year = doc.get("first_publish_year")
    if year is not None:
        try:
            year = int(year)
        except (TypeError, ValueError) as e:
            raise BookLookupError(
                f"Open Library first_publish_year is not numeric: {year!r}"
            ) from e

    return SearchResult(title=title.strip(), author=str(author), year=year)
