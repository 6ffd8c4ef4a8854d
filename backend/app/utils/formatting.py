# app/utils/formatting.py
from datetime import datetime, timezone


def format_bytes(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes}B"
    value = float(num_bytes)
    for unit in "KMGTPE":
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f}{unit}B"


def epoch_millis(dt: datetime = None) -> int:
    dt = dt or datetime.now(timezone.utc)
    return int(dt.timestamp() * 1000)
