"""Command-line interface for the Akshara learning core."""
