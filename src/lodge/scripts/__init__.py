"""Operational maintenance scripts."""
