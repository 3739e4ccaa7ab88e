"""
cli — Typer CLI entry-point for cyberswarm.

Commands:
    start       Run a red/blue simulation
    report      Render saved results as markdown / JSON
    scenarios   List scenario files
    validate    Check configuration
    tools       Show the security tool catalog
    agents      Show the built-in agents
"""

from .app import app, main

__all__ = ["app", "main"]
