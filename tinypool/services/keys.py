"""Key pool loading."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple

from ..errors import KeyListError

logger = logging.getLogger(__name__)


def mask_key(key: str) -> str:
    """Shorten a key for console output."""
    if len(key) <= 8:
        return key
    return f"{key[:4]}...{key[-4:]}"


@dataclass(frozen=True)
class KeyPool:
    """Ordered, non-empty set of API keys."""
    keys: Tuple[str, ...]

    def __post_init__(self):
        if not self.keys:
            raise KeyListError("Key pool is empty")

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)


def load_keys(path: Path) -> KeyPool:
    """
    Read keys from a UTF-8 file, one per line.

    Blank lines are skipped and order is preserved. Duplicate lines are kept
    once so a key is never bound to two workers.

    Raises:
        KeyListError: file unreadable or without any key
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise KeyListError(f"Failed to read keys file {path}: {exc}") from exc

    keys = []
    for line in content.splitlines():
        key = line.strip()
        if not key:
            continue
        if key in keys:
            logger.warning(f"Duplicate key ignored: {mask_key(key)}")
            continue
        keys.append(key)

    if not keys:
        raise KeyListError(f"Keys file is empty: {path}")

    logger.info(f"Loaded {len(keys)} key(s) from {path}")
    return KeyPool(tuple(keys))
