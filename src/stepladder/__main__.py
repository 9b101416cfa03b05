"""CLI entrypoint for running stepladder as a module."""

from stepladder.cli import cli

if __name__ == "__main__":
    cli()
