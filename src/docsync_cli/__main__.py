"""Allow running docsync as `python -m docsync_cli`."""

from docsync_cli import cli


if __name__ == "__main__":
    cli()
