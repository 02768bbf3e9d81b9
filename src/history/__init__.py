"""History reconstruction layer.

This module matches lifecycle events to snapshot states and propagates
attributes along each entity's timeline.
"""
