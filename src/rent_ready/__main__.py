"""Allow ``python -m rent_ready``."""

from rent_ready.cli import app

if __name__ == "__main__":
    app()
