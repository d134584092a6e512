"""AI recipe generation service."""
