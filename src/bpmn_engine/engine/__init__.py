"""Process engine components.

- Settings loaded from .env
- Structured logging
- Definition documents and the process instance that drives them
- Snapshot persistence and a small CLI surface
"""
