"""Allow ``python -m trajconvert``."""

from trajconvert.cli import cli

if __name__ == "__main__":
    cli()
