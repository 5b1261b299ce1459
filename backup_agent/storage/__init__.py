"""Object storage access for backup artifacts."""
