"""RotaPro multi-stop route optimization service."""
