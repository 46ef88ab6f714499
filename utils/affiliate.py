"""Amazon search links tagged with the site's affiliate id."""

import logging
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit, urlunsplit

LOGGER = logging.getLogger(__name__)
AMAZON_SEARCH_URL = "https://www.amazon.com/s"


def add_affiliate_tag(url: str, tag: str) -> str:
    """Set the `tag` query parameter on amazon.com URLs; return others unchanged."""
    try:
        parts = urlsplit(url)
    except ValueError:
        LOGGER.warning("Failed to parse URL %r", url)
        return url

    if "amazon.com" not in (parts.hostname or ""):
        return url

    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != "tag"]
    query.append(("tag", tag))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def build_search_url(*terms: str, tag: str) -> str:
    """Return a tagged Amazon search URL for the non-empty `terms`."""
    keywords = "+".join(quote_plus(term.strip()) for term in terms if term and term.strip())
    return add_affiliate_tag(f"{AMAZON_SEARCH_URL}?k={keywords}", tag)
