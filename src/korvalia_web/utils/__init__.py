"""
Utility modules for the Korvalia web front service.

Exports utilities for logging, rate limiting, security and error types.
"""
