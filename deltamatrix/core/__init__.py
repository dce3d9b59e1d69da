"""Core utilities: logging and the domain exception hierarchy."""
