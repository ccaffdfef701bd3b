"""
gig_planner.reporting — ASCII formatting of engine results for the CLI.

Modules:
  formatters — terminal table formatters for Typer CLI commands.
"""
