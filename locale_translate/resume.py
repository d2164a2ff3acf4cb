"""Skip keys that a previous run already translated."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .formats import LocalizationFileError, read_tree
from .tree import flatten


def resume(flat: Mapping[str, str], existing: Optional[Mapping[str, str]]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Split ``flat`` into keys still to translate and a seed of prior translations.

    Every key of ``existing`` is seeded, including keys the source no
    longer has, so a resumed output never loses earlier work.
    """
    if not existing:
        return dict(flat), {}

    seed = dict(existing)
    filtered = {key: value for key, value in flat.items() if key not in seed}
    return filtered, seed


def load_existing_output(path: Path) -> Optional[Dict[str, str]]:
    if not path.exists():
        return None
    try:
        return flatten(read_tree(path))
    except LocalizationFileError as exc:
        logging.warning("Could not load previous translations from %s: %s", path, exc)
        return None
