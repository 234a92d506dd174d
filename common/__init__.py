"""Shared error catalogue."""
