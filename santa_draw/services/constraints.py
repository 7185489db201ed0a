from __future__ import annotations

from pathlib import Path
from typing import Iterable, Set, Tuple, Union

from loguru import logger

COMMENT_MARKER = "#"
DELIMITER = ","


def parse_constraints(lines: Iterable[str]) -> Set[Tuple[str, str]]:
    pairs: Set[Tuple[str, str]] = set()
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_MARKER):
            continue
        fields = stripped.split(DELIMITER)
        if len(fields) != 2:
            continue
        giver, receiver = (field.strip() for field in fields)
        if not giver or not receiver:
            continue
        pairs.add((giver.lower(), receiver.lower()))
    return pairs


def load_constraints(path: Union[str, Path]) -> Set[Tuple[str, str]]:
    """Forbidden (giver, receiver) pairs, one ``GIVER, RECEIVER`` per line.

    The file is optional: a missing or unreadable file means no constraints.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return set()
    except (OSError, UnicodeDecodeError) as exc:
        logger.bind(path=str(path)).warning("Failed to read constraints: {error}", error=str(exc))
        return set()

    pairs = parse_constraints(text.splitlines())
    logger.bind(path=str(path)).debug("Loaded {count} constraints", count=len(pairs))
    return pairs
