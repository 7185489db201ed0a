from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

MAX_ATTEMPTS = 1000


def _shuffled(names: Sequence[str], rng: random.Random) -> List[str]:
    result = list(names)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def _is_valid(
    givers: Sequence[str],
    receivers: Sequence[str],
    exclusions: Set[Tuple[str, str]],
) -> bool:
    for giver, receiver in zip(givers, receivers):
        if giver == receiver:
            return False
        if (giver.lower(), receiver.lower()) in exclusions:
            return False
    return True


def generate_assignments(
    names: Sequence[str],
    exclusions: Optional[Iterable[Tuple[str, str]]] = None,
    seed: Optional[int] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> Optional[Dict[str, str]]:
    """Draw a giver -> receiver mapping with no self-gifts and no excluded pairs.

    Every attempt is a uniform shuffle that is kept only if it passes all checks,
    so the result is uniform over the valid derangements. Returns ``None`` for
    fewer than two names or when ``max_attempts`` shuffles all fail; a retry may
    still succeed.
    """
    if len(names) < 2:
        return None

    rng = random.Random(seed)
    givers = list(names)
    excluded = {(giver.lower(), receiver.lower()) for giver, receiver in exclusions or ()}

    for _ in range(max_attempts):
        receivers = _shuffled(givers, rng)
        if _is_valid(givers, receivers, excluded):
            return dict(zip(givers, receivers))

    return None
