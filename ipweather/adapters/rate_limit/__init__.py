"""Rate limiting adapters.

One limiter guards each rate-limited upstream API. State lives in process
memory and is persisted to a small JSON file across restarts.
"""
