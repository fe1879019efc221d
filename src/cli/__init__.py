"""
WordPath terminal interface.

- main: typer app and commands
- session_runner: interactive daily session
"""
