"""
Timeseries store adapters.

Each adapter implements both LatestTimestampQuery and BatchPointWriter
(oti/types.py) for one backend:

    • InfluxStore   — InfluxDB 1.x HTTP API
    • SupabaseStore — a Supabase/Postgres table
"""

from .influx import InfluxStore
from .supabase_store import SupabaseStore

__all__ = [
    "InfluxStore",
    "SupabaseStore",
]
