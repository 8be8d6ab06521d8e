"""Entry point for Waypoint."""

import sys

from .app import run_app
from .config import Config


def main() -> int:
    """Main entry point for Waypoint."""
    try:
        # Load configuration
        config = Config.load()

        # Run the application
        return run_app(config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
