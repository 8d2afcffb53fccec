from mirrorwalk.interfaces.cli.cli import main

__all__ = ["main"]
