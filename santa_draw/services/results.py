from __future__ import annotations

import datetime
from pathlib import Path
from typing import List, Mapping, Optional, Union

from loguru import logger

from santa_draw.core.collation import collation_key


def format_results(mapping: Mapping[str, str], created_at: Optional[datetime.datetime] = None) -> List[str]:
    created_at = created_at or datetime.datetime.now(tz=datetime.timezone.utc)
    lines = [
        f"# Draw results - created at {created_at.isoformat()}",
        "# Format: GIVER, RECEIVER",
    ]
    for giver in sorted(mapping, key=collation_key):
        lines.append(f"{giver}, {mapping[giver]}")
    return lines


def append_results(path: Union[str, Path], mapping: Mapping[str, str]) -> bool:
    path = Path(path)
    lines = format_results(mapping)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        prefix = "\n" if path.exists() and path.stat().st_size else ""
        with path.open("a", encoding="utf-8") as handle:
            handle.write(prefix + "\n".join(lines) + "\n")
    except OSError as exc:
        logger.bind(path=str(path)).error("Failed to write draw results: {error}", error=str(exc))
        return False
    return True
