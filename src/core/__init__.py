"""Shared domain models, location helpers and error taxonomy."""
