"""
Command-line interface for spot-mp3.

This module implements the CLI using Click, with rich-click for colored
help output. All commands go through DownloaderService.

Commands:
    spot-mp3 search QUERY                 Search YouTube (text or Spotify link)
    spot-mp3 download QUERY [--pick N]    Download one result, or a whole playlist
    spot-mp3 playlist URL                 Download a Spotify playlist
    spot-mp3 metadata NAME ARTIST         Show Spotify audio features

Global Options:
    --config PATH                         Path to config.yaml
    --client-id / --client-secret         Spotify credentials (override config)
    --verbose                             Debug output on the console

Exit Codes:
    0 success, 1 configuration or usage error, 3 Spotify error,
    4 other application error, 130 interrupted
"""

import sys
from pathlib import Path

import rich_click as click

from spot_mp3 import __version__

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "spot-mp3": [
        {
            "name": "Spotify Credentials",
            "options": ["--client-id", "--client-secret"],
        },
        {
            "name": "General",
            "options": ["--config", "--verbose", "--version", "--help"],
        },
    ],
}

from spot_mp3.core import (
    Config,
    ConfigError,
    SpotifyError,
    SpotMp3Error,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from spot_mp3.core.config import SpotifyConfig
from spot_mp3.core.progress import PlaylistProgressBar, TransferProgressBar
from spot_mp3.service import DownloaderService
from spot_mp3.spotify.links import classify
from spot_mp3.spotify.models import LinkKind, PlaylistResolution

logger = get_logger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to config.yaml (default: ./config.yaml).",
)
@click.option("--client-id", help="Spotify client ID.")
@click.option("--client-secret", help="Spotify client secret.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug messages.")
@click.version_option(__version__, prog_name="spot-mp3")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    client_id: str | None,
    client_secret: str | None,
    verbose: bool,
) -> None:
    """
    Search or paste a Spotify link, download [bold]MP3[/bold] audio via YouTube.

    Files are transcoded to 192 kbps MP3 and tagged with BPM, key and
    other Spotify audio features when credentials are available.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    if client_id or client_secret:
        config = _with_credentials(config, client_id, client_secret)

    setup_logging(config.output.directory, verbose=verbose)
    ctx.call_on_close(shutdown_logging)

    service = DownloaderService.from_config(config)
    service.initialize()
    ctx.obj = service


def _with_credentials(config: Config, client_id: str | None, client_secret: str | None) -> Config:
    spotify = SpotifyConfig(
        client_id=client_id or config.spotify.client_id,
        client_secret=client_secret or config.spotify.client_secret,
    )
    return Config(spotify=spotify, output=config.output, download=config.download, network=config.network)


def _run(action) -> None:
    """Run a command body, mapping errors to exit codes."""
    try:
        action()
    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if e.is_auth_error:
            click.echo("Check your client_id and client_secret", err=True)
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        sys.exit(3)
    except SpotMp3Error as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)


def _print_results(results: list[dict]) -> None:
    for index, result in enumerate(results, start=1):
        click.echo(f"{index:>2}. {result['channel']} - {result['title']} [{result['duration']}]")
        click.echo(f"    {result['url']}")


def _download_playlist(service: DownloaderService, playlist: dict, output: str | None) -> None:
    resolution = PlaylistResolution.from_dict(playlist)
    folder = service.select_folder(output)
    if not folder["success"]:
        raise click.UsageError(folder["error"])

    with PlaylistProgressBar(total=resolution.total_tracks) as bar:
        response = service.download_playlist(
            resolution, folder["path"], on_playlist_progress=bar.advance
        )
        bar.finish()

    if not response["success"]:
        click.echo(f"Playlist download failed: {response['error']}", err=True)
        sys.exit(4)

    _print_batch_summary(response)


def _print_batch_summary(response: dict) -> None:
    logger.info("=" * 60)
    logger.info(f"Playlist: {response['playlistName']}")
    logger.info(f"Downloaded: {response['downloaded']}/{response['totalTracks']}")
    logger.info(f"Failed: {response['failed']}")
    for error in response["errors"]:
        logger.info(f"  - {error}")
    logger.info(f"Folder: {response['folder']}")
    logger.info("=" * 60)


@cli.command()
@click.argument("query")
@click.pass_obj
def search(service: DownloaderService, query: str) -> None:
    """Search YouTube for QUERY (free text or a Spotify link)."""
    def action() -> None:
        response = service.search(query)
        if response.get("type") == "playlist":
            if not response["success"]:
                click.echo(f"Could not read playlist: {response['error']}", err=True)
                click.echo(f"Open {response['playlistUrl']} and search tracks manually.", err=True)
                sys.exit(4)
            playlist = response["playlist"]
            click.echo(f"{playlist['playlistName']} ({playlist['totalTracks']} tracks)")
            for index, track in enumerate(playlist["tracks"], start=1):
                click.echo(f"{index:>3}. {track['artists']} - {track['name']}")
            return

        if not response["success"]:
            click.echo(f"Search failed: {response['error']}", err=True)
            sys.exit(4)
        if not response["results"]:
            click.echo("No results found.")
            return
        _print_results(response["results"])

    _run(action)


@cli.command()
@click.argument("query")
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Destination folder.")
@click.option("--pick", type=click.IntRange(min=1), default=1, show_default=True,
              help="Which search result to download.")
@click.pass_obj
def download(service: DownloaderService, query: str, output: str | None, pick: int) -> None:
    """Download a search result for QUERY, or every track of a playlist link."""
    def action() -> None:
        response = service.search(query)

        if response.get("type") == "playlist":
            if not response["success"]:
                click.echo(f"Could not read playlist: {response['error']}", err=True)
                sys.exit(4)
            _download_playlist(service, response["playlist"], output)
            return

        if not response["success"]:
            click.echo(f"Search failed: {response['error']}", err=True)
            sys.exit(4)

        results = response["results"]
        if len(results) < pick:
            click.echo(f"Only {len(results)} results found for '{response['query']}'.", err=True)
            sys.exit(4)

        folder = service.select_folder(output)
        if not folder["success"]:
            raise click.UsageError(folder["error"])

        with TransferProgressBar() as bar:
            outcome = service.download_track(
                results[pick - 1],
                folder["path"],
                on_progress=bar.update,
                descriptor=response.get("track"),
            )

        if not outcome["success"]:
            click.echo(f"Download failed: {outcome['error']}", err=True)
            sys.exit(4)
        click.echo(f"Saved {outcome['filePath']} ({outcome['size']})")

    _run(action)


@cli.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Destination folder.")
@click.pass_obj
def playlist(service: DownloaderService, url: str, output: str | None) -> None:
    """Download every track of the Spotify playlist at URL."""
    link = classify(url)
    if link is None or link.kind is not LinkKind.PLAYLIST:
        raise click.UsageError(f"Not a Spotify playlist link: {url}")

    def action() -> None:
        resolution = service.resolver.resolve_playlist(link.id)
        _download_playlist(service, resolution.to_dict(), output)

    _run(action)


@cli.command()
@click.argument("name")
@click.argument("artist")
@click.pass_obj
def metadata(service: DownloaderService, name: str, artist: str) -> None:
    """Show Spotify audio features for NAME by ARTIST."""
    def action() -> None:
        response = service.get_track_metadata(name, artist)
        if not response["success"]:
            click.echo(response["error"], err=True)
            sys.exit(4)
        for key, value in response["metadata"].items():
            if value is None or value == []:
                continue
            click.echo(f"{key:>18}: {value}")

    _run(action)


def main() -> None:
    """Entry point for the spot-mp3 console script."""
    cli()


if __name__ == "__main__":
    main()
