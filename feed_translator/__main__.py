"""Main entry point for the feed translator package."""

from feed_translator.cli import cli

if __name__ == "__main__":
    cli()
