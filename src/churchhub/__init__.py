"""churchhub — Members, converts, and visitors for a church office.

Imports roster spreadsheets, reconciles them with the local SQLite store,
and derives monthly growth analytics.
"""

__version__ = "1.0.0"
