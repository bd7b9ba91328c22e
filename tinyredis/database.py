"""In-memory key-value store holding strings, lists and hashes."""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Mapping
from os import PathLike
from typing import Optional, Union

_INT_PREFIX = re.compile(r"\s*([+-]?[0-9]+)")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

StrPath = Union[str, "PathLike[str]"]


def _parse_int(text: Union[str, int]) -> int:
    """Read a leading 32-bit integer from text, ignoring anything after it."""
    if isinstance(text, int):
        value = text
    else:
        match = _INT_PREFIX.match(text)
        if match is None:
            raise ValueError(f"invalid integer: {text!r}")
        value = int(match.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


class Database:
    """Thread-safe store of strings, lists and hashes keyed by name."""

    _shared: Optional["Database"] = None
    _shared_lock = threading.Lock()

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._strings: dict[str, str] = {}
        self._lists: dict[str, list[str]] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._expiry: dict[str, float] = {}

    @staticmethod
    def instance() -> "Database":
        """Return the process-wide shared database."""
        with Database._shared_lock:
            if Database._shared is None:
                Database._shared = Database()
            return Database._shared

    # General

    def flush_all(self) -> None:
        """Remove every key and every expiry time."""
        with self._lock:
            self._strings.clear()
            self._lists.clear()
            self._hashes.clear()
            self._expiry.clear()

    # Strings and keys

    def set(self, key: str, value: str) -> None:
        """Store a string value and drop any expiry time on the key."""
        with self._lock:
            self._strings[key] = value
            self._expiry.pop(key, None)

    def get(self, key: str) -> Optional[str]:
        """Return the string stored at key, or None."""
        with self._lock:
            return self._strings.get(key)

    def keys(self) -> list[str]:
        """Return string keys, then list keys, then hash keys."""
        with self._lock:
            return [*self._strings, *self._lists, *self._hashes]

    def type(self, key: str) -> str:
        """Return 'string', 'list', 'hash' or 'none' for key."""
        with self._lock:
            if key in self._strings:
                return "string"
            if key in self._lists:
                return "list"
            if key in self._hashes:
                return "hash"
            return "none"

    def delete(self, key: str) -> bool:
        """Remove key from every store.

        The result is always False, whether or not anything was removed;
        callers have always reported zero deletions.
        """
        with self._lock:
            self._strings.pop(key, None)
            self._lists.pop(key, None)
            self._hashes.pop(key, None)
            return False

    def expire(self, key: str, seconds: Union[str, int]) -> bool:
        """Record an expiry time for an existing key.

        Returns False if the key does not exist. Raises ValueError if
        seconds is not an integer.
        """
        with self._lock:
            exists = key in self._strings or key in self._lists or key in self._hashes
            if not exists:
                return False
            self._expiry[key] = time.monotonic() + _parse_int(seconds)
            return True

    def rename(self, old_key: str, new_key: str) -> bool:
        """Move old_key's values and expiry to new_key in each store holding it."""
        with self._lock:
            found = False
            for store in (self._strings, self._lists, self._hashes, self._expiry):
                if old_key in store:
                    store[new_key] = store.pop(old_key)
                    found = True
            return found

    # Lists

    def llen(self, key: str) -> int:
        """Return the length of the list at key, 0 if there is none."""
        with self._lock:
            return len(self._lists.get(key, ()))

    def lpush(self, key: str, value: str) -> None:
        """Insert value at the head of the list at key."""
        with self._lock:
            self._lists.setdefault(key, []).insert(0, value)

    def rpush(self, key: str, value: str) -> None:
        """Append value to the tail of the list at key."""
        with self._lock:
            self._lists.setdefault(key, []).append(value)

    def lpop(self, key: str) -> Optional[str]:
        """Remove and return the head of the list, or None if it is empty."""
        with self._lock:
            items = self._lists.get(key)
            return items.pop(0) if items else None

    def rpop(self, key: str) -> Optional[str]:
        """Remove and return the tail of the list, or None if it is empty."""
        with self._lock:
            items = self._lists.get(key)
            return items.pop() if items else None

    def lrem(self, key: str, count: int, value: str) -> int:
        """Remove occurrences of value and return how many were removed.

        count 0 removes all, a positive count removes that many from the
        head, a negative count removes that many from the tail.
        """
        with self._lock:
            items = self._lists.get(key)
            if items is None:
                return 0
            if count == 0:
                kept = [item for item in items if item != value]
                removed = len(items) - len(kept)
                items[:] = kept
                return removed
            limit = abs(count)
            order = items if count > 0 else list(reversed(items))
            kept = []
            removed = 0
            for item in order:
                if item == value and removed < limit:
                    removed += 1
                else:
                    kept.append(item)
            if count < 0:
                kept.reverse()
            items[:] = kept
            return removed

    def _resolve_index(self, items: list[str], index: int) -> Optional[int]:
        if index < 0:
            index += len(items)
        if 0 <= index < len(items):
            return index
        return None

    def lindex(self, key: str, index: int) -> Optional[str]:
        """Return the element at index (negative counts from the end), or None."""
        with self._lock:
            items = self._lists.get(key)
            if items is None:
                return None
            position = self._resolve_index(items, index)
            return None if position is None else items[position]

    def lset(self, key: str, index: int, value: str) -> bool:
        """Replace the element at index; False if the list or index is missing."""
        with self._lock:
            items = self._lists.get(key)
            if items is None:
                return False
            position = self._resolve_index(items, index)
            if position is None:
                return False
            items[position] = value
            return True

    # Hashes

    def hset(self, key: str, field: str, value: str) -> bool:
        """Set a field in the hash at key."""
        with self._lock:
            self._hashes.setdefault(key, {})[field] = value
            return True

    def hget(self, key: str, field: str) -> Optional[str]:
        """Return the value of a hash field, or None."""
        with self._lock:
            return self._hashes.get(key, {}).get(field)

    def hexists(self, key: str, field: str) -> bool:
        """Tell whether the hash at key has field."""
        with self._lock:
            return field in self._hashes.get(key, {})

    def hdel(self, key: str, field: str) -> bool:
        """Remove a field from the hash; True if it was there."""
        with self._lock:
            fields = self._hashes.get(key)
            if fields is None or field not in fields:
                return False
            del fields[field]
            return True

    def hgetall(self, key: str) -> dict[str, str]:
        """Return a copy of the hash at key, empty if there is none."""
        with self._lock:
            return dict(self._hashes.get(key, {}))

    def hkeys(self, key: str) -> list[str]:
        """Return the field names of the hash at key."""
        with self._lock:
            return list(self._hashes.get(key, {}))

    def hvals(self, key: str) -> list[str]:
        """Return the field values of the hash at key."""
        with self._lock:
            return list(self._hashes.get(key, {}).values())

    def hlen(self, key: str) -> int:
        """Return the number of fields in the hash at key."""
        with self._lock:
            return len(self._hashes.get(key, {}))

    def hmset(self, key: str, fields: Mapping[str, str]) -> bool:
        """Set several fields in the hash at key."""
        with self._lock:
            self._hashes.setdefault(key, {}).update(fields)
            return True

    # Persistence

    def dump(self, filename: StrPath) -> None:
        """Write all strings, lists and hashes to a text file.

        Each line is a record: 'K key value', 'L key item...' or
        'H key field:value...'. Raises OSError if the file cannot be written.
        """
        with self._lock, open(filename, "w", encoding="utf-8", newline="\n") as out:
            for key, value in self._strings.items():
                out.write(f"K {key} {value}\n")
            for key, items in self._lists.items():
                out.write("".join([f"L {key}", *(f" {item}" for item in items), "\n"]))
            for key, fields in self._hashes.items():
                pairs = (f" {field}:{value}" for field, value in fields.items())
                out.write("".join([f"H {key}", *pairs, "\n"]))

    def load(self, filename: StrPath) -> None:
        """Replace strings, lists and hashes with the records in a dump file.

        Expiry times are left as they are. Raises OSError if the file
        cannot be read.
        """
        with self._lock, open(filename, "r", encoding="utf-8", newline="") as src:
            lines = src.read().split("\n")
            self._strings.clear()
            self._lists.clear()
            self._hashes.clear()
            for line in lines:
                self._load_record(line)

    def _load_record(self, line: str) -> None:
        stripped = line.lstrip()
        if not stripped:
            return
        kind, tokens = stripped[0], stripped[1:].split()
        key = tokens[0] if tokens else ""
        rest = tokens[1:]
        if kind == "K":
            self._strings[key] = rest[0] if rest else ""
        elif kind == "L":
            self._lists[key] = rest
        elif kind == "H":
            fields: dict[str, str] = {}
            for pair in rest:
                field, sep, value = pair.partition(":")
                if sep:
                    fields[field] = value
            self._hashes[key] = fields