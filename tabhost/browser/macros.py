"""URL macros: symbolic search shortcuts expanded to destination URLs."""
import re
from typing import Callable
from urllib.parse import quote

from ..core.errors import ClientError


def _encode(query: str) -> str:
    return quote(query, safe="!~*'()")


def _strip_spaces(query: str) -> str:
    return re.sub(r"\s+", "", query)


URL_MACROS: dict[str, Callable[[str], str]] = {
    "@google_search": lambda q: f"https://www.google.com/search?q={_encode(q)}",
    "@youtube_search": lambda q: f"https://www.youtube.com/results?search_query={_encode(q)}",
    "@amazon_search": lambda q: f"https://www.amazon.com/s?k={_encode(q)}",
    "@reddit_search": lambda q: f"https://www.reddit.com/search/?q={_encode(q)}",
    "@wikipedia_search": lambda q: f"https://en.wikipedia.org/wiki/Special:Search?search={_encode(q)}",
    "@twitter_search": lambda q: f"https://twitter.com/search?q={_encode(q)}",
    "@yelp_search": lambda q: f"https://www.yelp.com/search?find_desc={_encode(q)}",
    "@spotify_search": lambda q: f"https://open.spotify.com/search/{_encode(q)}",
    "@netflix_search": lambda q: f"https://www.netflix.com/search?q={_encode(q)}",
    "@linkedin_search": lambda q: f"https://www.linkedin.com/search/results/all/?keywords={_encode(q)}",
    "@instagram_search": lambda q: f"https://www.instagram.com/explore/tags/{_encode(_strip_spaces(q))}",
    "@tiktok_search": lambda q: f"https://www.tiktok.com/search?q={_encode(q)}",
    "@twitch_search": lambda q: f"https://www.twitch.tv/search?term={_encode(q)}",
}


def expand_macro(name: str, query: str = "") -> str:
    """Expand a macro name and free-text query into a URL.

    Raises:
        ClientError: If the macro name is unknown.
    """
    expander = URL_MACROS.get(name)
    if expander is None:
        raise ClientError(f"Unknown macro: {name}")
    return expander(query or "")
