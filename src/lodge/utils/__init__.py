"""Shared utilities: date handling and structured logging."""
