"""
Pulse - personalised update feeds.

Users describe which topics they want updates about, how deeply, and how
often. The `interests` package holds the configurator; this package holds the
shared runtime (settings, LLM access, CLI, web shell).
"""

__version__ = "1.0.0"
