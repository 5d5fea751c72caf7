"""
Classification of raw user input into Spotify links.

Two link shapes are recognized for tracks, albums and playlists:

    https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh
    https://open.spotify.com/intl-it/playlist/37i9dQZF1DXcBWIGoYBM5M?si=...
    spotify:album:1ATL5GLyefJaxhQzSPVrLX

Anything else is plain search text: classify() returns None and never raises.
"""

import re

from spot_mp3.spotify.models import ExternalLink, LinkKind


WEB_LINK_PATTERN = re.compile(
    r"^https?://open\.spotify\.com/(?:intl-[a-zA-Z-]+/)?(track|album|playlist)/([a-zA-Z0-9]+)"
)
URI_LINK_PATTERN = re.compile(r"^spotify:(track|album|playlist):([a-zA-Z0-9]+)")


def classify(query: object) -> ExternalLink | None:
    """
    Classify a query string as a Spotify link or plain search text.

    Args:
        query: Raw user input. Surrounding whitespace is ignored.

    Returns:
        ExternalLink with the entity kind and id, or None if the input
        does not match a known link shape.

    Example:
        classify("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh")
        # ExternalLink(kind=LinkKind.TRACK, id="4iV5W9uYEdYUVa79Axb7Rh")
        classify("daft punk one more time")
        # None
    """
    if not isinstance(query, str):
        return None

    text = query.strip()
    for pattern in (WEB_LINK_PATTERN, URI_LINK_PATTERN):
        match = pattern.match(text)
        if match:
            return ExternalLink(kind=LinkKind(match.group(1)), id=match.group(2))

    return None


def is_spotify_link(query: object) -> bool:
    """Return True if the query is any recognized Spotify link."""
    return classify(query) is not None
