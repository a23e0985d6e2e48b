"""
CLI entry point using Typer.

Provides commands for workouts and sessions:
- list / show / create / delete: manage workout programs
- run: run an interactive workout session
- history: completed workouts
- stats: progress statistics
"""

from .app import app
from .commands import progress, session, workouts  # noqa: F401  (register commands)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
