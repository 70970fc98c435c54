"""Local HTTP surface for the terminal UI."""
