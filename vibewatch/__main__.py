"""Run the change watcher with ``python -m vibewatch``."""

from .cli import main


if __name__ == "__main__":
    main()
