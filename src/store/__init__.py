"""Output storage layer.

This module persists reconstructed history, error records, and stats.
"""
