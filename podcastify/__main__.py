"""Module entrypoint for running Podcastify as ``python -m podcastify``."""

from __future__ import annotations

from podcastify.cli import main


if __name__ == "__main__":
    main()
