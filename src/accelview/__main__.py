"""Main function for accelview."""

from accelview.core import cli


def run_main() -> None:
    """Main entry point to accelview."""
    cli.app()


if __name__ == "__main__":
    cli.app()
