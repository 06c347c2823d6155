"""
jobqueue - durable background jobs backed by a relational table.

Producers schedule jobs through a JobManager-built scheduler; independent
worker processes poll the table, claim one job at a time with a conditional
update, run it and record success, a retry with backoff, or permanent failure.
"""

__version__ = "1.0.0"
