"""Streaming recipe client."""
