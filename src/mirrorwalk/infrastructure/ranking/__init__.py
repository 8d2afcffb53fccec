"""Stream ranking."""
