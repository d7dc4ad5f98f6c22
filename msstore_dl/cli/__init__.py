"""
Command-line interface: the Typer app, console formatting and workflow reporting.
"""
