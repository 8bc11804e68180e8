"""Allow ``python -m ytdash``."""

from ytdash.cli import app

if __name__ == "__main__":
    app()
