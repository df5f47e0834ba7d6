"""Host interface for JujuHub.

Provides abstractions for host platform operations (filesystem, environment,
time, logging) so the collections never touch them directly.
"""

from .filesystem import ensure_dir, write_atomic
from .environment import RuntimeContext, get_env, resolve_context
from .logs import configure_logging
from .time import now_utc, now_iso, to_datetime, to_timestamp

__all__ = [
    "ensure_dir",
    "write_atomic",
    "RuntimeContext",
    "get_env",
    "resolve_context",
    "configure_logging",
    "now_utc",
    "now_iso",
    "to_datetime",
    "to_timestamp",
]
