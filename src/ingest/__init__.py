"""Source ingestion layer.

This module reads raw event and state rows from local or S3 sources.
It turns them into typed records for the history layer.
"""
