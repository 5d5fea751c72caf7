"""
Spotify client-credentials session.

The session holds the client id/secret pair and the current access token.
It is created once per process and passed to every component that talks
to the Spotify Web API. A session without a token is valid: callers fall
back to scraping public pages.

Usage:
    session = SpotifySession(config.spotify.client_id, config.spotify.client_secret)
    session.refresh()          # client-credentials exchange
    if session.access_token:
        ...
"""

import base64
import threading

import requests

from spot_mp3.core.logger import get_logger


logger = get_logger(__name__)


TOKEN_URL = "https://accounts.spotify.com/api/token"


def request_access_token(
    client_id: str,
    client_secret: str,
    timeout: float = 15.0,
    http: requests.Session | None = None
) -> str | None:
    """
    Exchange client credentials for an access token.

    Args:
        client_id: Spotify application client id.
        client_secret: Spotify application client secret.
        timeout: Request timeout in seconds.
        http: Optional requests session (defaults to the requests module).

    Returns:
        The access token string, or None on any failure. Failures are
        logged, never raised.
    """
    if not client_id or not client_secret:
        logger.debug("No Spotify credentials configured, skipping token exchange")
        return None

    credentials = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    headers = {
        "Authorization": f"Basic {credentials}",
        "Content-Type": "application/x-www-form-urlencoded",
    }
    data = {"grant_type": "client_credentials"}

    client = http or requests
    try:
        response = client.post(TOKEN_URL, headers=headers, data=data, timeout=timeout)
        response.raise_for_status()
        token = response.json().get("access_token")
    except requests.RequestException as e:
        logger.warning(f"Spotify token request failed: {e}")
        return None
    except ValueError as e:
        logger.warning(f"Spotify token response is not valid JSON: {e}")
        return None

    if not token:
        logger.warning("Spotify token response did not contain an access token")
        return None

    logger.debug("Obtained Spotify access token")
    return token


class SpotifySession:
    """
    Holder of Spotify credentials and the current access token.

    The token is read by many calls and written only by configure(),
    refresh() and clear(). Writes are serialized by a lock; readers must
    accept None (scraping-only mode).

    Attributes:
        client_id: Current client id.
        client_secret: Current client secret.
        timeout: Token endpoint timeout in seconds.
    """

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        access_token: str | None = None,
        timeout: float = 15.0,
        http: requests.Session | None = None
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._http = http
        self._access_token = access_token
        self._lock = threading.Lock()

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def has_token(self) -> bool:
        return self._access_token is not None

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def refresh(self) -> str | None:
        """
        Run the client-credentials exchange with the stored pair.

        Returns:
            The new token, or None if the exchange failed. A failed
            refresh keeps the previous token.
        """
        token = request_access_token(
            self.client_id, self.client_secret, timeout=self.timeout, http=self._http
        )
        if token is not None:
            with self._lock:
                self._access_token = token
        return token

    def configure(self, client_id: str, client_secret: str) -> bool:
        """
        Replace the stored credentials and exchange them for a token.

        Returns:
            True if a token was obtained with the new credentials.
            On failure the session drops its token.
        """
        with self._lock:
            self.client_id = client_id.strip()
            self.client_secret = client_secret.strip()
            self._access_token = None

        return self.refresh() is not None

    def clear(self) -> None:
        """Forget the current token (the next API call skips to scraping)."""
        with self._lock:
            self._access_token = None
