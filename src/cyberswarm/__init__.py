"""
cyberswarm — Multi-agent red/blue cybersecurity simulation.

Architecture:
    core/         Shared models, configuration, logging, decision oracle, reporting
    agents/       Agent state machine and the built-in red / blue agent kinds
    orchestrator/ Task scheduler, logic pipe and simulation driver
    tools/        Security tool catalog
    cli/          Typer CLI entry-points
"""

__version__ = "0.1.0"
