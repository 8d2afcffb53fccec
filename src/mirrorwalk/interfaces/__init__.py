"""Entry points: composition root and command line."""
