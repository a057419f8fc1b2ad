"""
Keyed contract storage

Records are stored encoded, so callers always work on a decoded copy and a
change only becomes visible after an explicit ``insert``.
"""

from typing import Callable, Dict, Generic, Hashable, Iterator, Optional, Tuple, TypeVar

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class Mapping(Generic[K, V]):
    """Mapping from key to encoded record"""

    def __init__(self, encode: Callable[[V], bytes], decode: Callable[[bytes], V]):
        self._encode = encode
        self._decode = decode
        self._cells: Dict[K, bytes] = {}

    def get(self, key: K) -> Optional[V]:
        raw = self._cells.get(key)
        if raw is None:
            return None
        return self._decode(raw)

    def insert(self, key: K, value: V) -> None:
        # Encode before replacing the stored record
        raw = self._encode(value)
        self._cells[key] = raw

    def contains(self, key: K) -> bool:
        return key in self._cells

    def items(self) -> Iterator[Tuple[K, V]]:
        for key in sorted(self._cells):
            yield key, self._decode(self._cells[key])

    def __len__(self) -> int:
        return len(self._cells)
