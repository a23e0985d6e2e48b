"""Command modules register themselves on the shared Typer app when imported."""
