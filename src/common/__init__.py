"""Shared helpers (HTTP, logging) used across the project."""
