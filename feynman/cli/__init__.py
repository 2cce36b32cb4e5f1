"""
CLI Module - Terminal front end.

Components:
- main: Typer commands and logging setup
- interactive: Keyboard-driven session over TutorApp
- views: Rich renderables per screen
"""
