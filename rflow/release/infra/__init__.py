"""Adapters for external systems (gh CLI, tagging, version files)."""
