"""CLI package for interruptible."""

from dotenv import load_dotenv

load_dotenv()

from .state import app  # noqa: E402

# Import subcommand modules so their @app.command() decorators register
from . import demo as _demo  # noqa: E402,F401
from . import trace as _trace  # noqa: E402,F401


def cli() -> None:
    """CLI entrypoint."""
    app(prog_name="interruptible")


__all__ = ["app", "cli"]


if __name__ == "__main__":
    cli()
