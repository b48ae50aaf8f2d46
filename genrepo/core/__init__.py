"""Core constants, error taxonomy and logging setup."""
