"""
Central CLI entrypoint for the Stock Tracker project.

Usage:
    python main.py [--config CONFIG_PATH] [--mock] <command> [options]

See ``stock_tracker.cli`` for the supported commands.
"""

from stock_tracker.cli import main

if __name__ == "__main__":
    main()
