"""Monthly report pipeline.

This package provides:
- Report configuration (TOML)
- A rich progress display for repository fetching
- The end-to-end runner: fetch, classify, render, write

Optional enrichments (engagement, build health, tap activity) degrade to
absent sections when their data cannot be fetched.
"""
