"""
spot-mp3: Search or paste a Spotify link, download MP3 audio via YouTube.

This package resolves a free-text query or a Spotify link to a playable
YouTube source, downloads the best audio-only stream, transcodes it to a
192 kbps MP3 and tags it with Spotify audio features for DJ software.

Architecture:
    spotify/   Link classification, metadata resolution (API with a
               scraping cascade fallback) and audio feature lookup.
    youtube/   Video search, primary stream extraction and the yt-dlp
               command-line fallback.
    download/  Transcoding bridge, tag writer, single-track pipeline and
               the sequential playlist batch orchestrator.
    core/      Configuration, exceptions, logging and progress reporting.
    service    Request/response facade used by the CLI.

Usage:
    spot-mp3 search "daft punk one more time"
    spot-mp3 download "https://open.spotify.com/track/..."
    spot-mp3 playlist "https://open.spotify.com/playlist/..."
"""

__version__ = "0.3.0"
