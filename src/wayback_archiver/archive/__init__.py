"""Wayback Machine pipelines.

Sub-modules:
- ``config``: endpoints, default headers, timemap and retry defaults
- ``timestamps``: 14-digit archive timestamp formatting and parsing
- ``_reshaper``: timemap payload reshaping (JSON and CSV output modes)
- ``save``: submit orchestrator (Save Page Now)
- ``timemap``: query orchestrator (capture history)
"""
