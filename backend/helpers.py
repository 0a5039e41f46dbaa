# helpers.py
from datetime import datetime, timezone

# Fixed-width UTC format so stored timestamps compare correctly as text.
TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def _now() -> str:
    return datetime.now(timezone.utc).strftime(TS_FORMAT)
