"""Akshara adaptive instruction core."""
