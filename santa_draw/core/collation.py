from __future__ import annotations

import unicodedata
from typing import Tuple


def collation_key(name: str) -> Tuple[str, str, str]:
    """Sort key approximating German dictionary order.

    Accented letters sort with their base letter and case is ignored on the
    first pass, so "Ärne" lands between "Anna" and "Bert" instead of after "Zoe".
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), name.casefold(), name
