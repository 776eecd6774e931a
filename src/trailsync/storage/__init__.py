"""Local disk storage for uploaded photos."""
