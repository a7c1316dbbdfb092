"""Shared utilities: exceptions, logging and URL helpers."""
