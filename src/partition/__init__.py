"""Identity-graph partitioning.

This module splits events and states into independent components
that the history engine can reconstruct in parallel.
"""
