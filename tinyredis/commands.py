"""RESP request parsing and command dispatch over a Database."""

from __future__ import annotations

import string
from collections.abc import Callable, Sequence
from typing import Optional, Union

from tinyredis.database import Database, _parse_int

_CRLF = "\r\n"
_OK = "+OK\r\n"
_NULL_BULK = "$-1\r\n"
_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)

Tokens = Sequence[str]


def _bulk(value: str) -> str:
    return f"${len(value)}\r\n{value}\r\n"


def _optional_bulk(value: Optional[str]) -> str:
    return _NULL_BULK if value is None else _bulk(value)


def _integer(number: int) -> str:
    return f":{number}\r\n"


def _array(items: Sequence[str]) -> str:
    return f"*{len(items)}\r\n" + "".join(_bulk(item) for item in items)


def _error(message: str) -> str:
    return f"-Error: {message}\r\n"


def parse_resp_command(data: Union[str, bytes, bytearray]) -> list[str]:
    """Split a RESP array of bulk strings into its tokens.

    Input that does not start with '*' yields no tokens. Parsing stops
    quietly at the first malformed or truncated element. Raises ValueError
    if the element count or a bulk length is not an integer.
    """
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("latin-1")
    if not data.startswith("*"):
        return []
    end = data.find(_CRLF, 1)
    if end < 0:
        return []
    count = _parse_int(data[1:end])
    pos = end + 2
    tokens: list[str] = []
    for _ in range(count):
        if not data.startswith("$", pos):
            break
        end = data.find(_CRLF, pos + 1)
        if end < 0:
            break
        length = _parse_int(data[pos + 1 : end])
        pos = end + 2
        if length < 0 or pos + length > len(data):
            break
        tokens.append(data[pos : pos + length])
        pos += length + 2
    return tokens


class CommandHandler:
    """Executes RESP-encoded commands against a database."""

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db = db if db is not None else Database.instance()
        self._commands: dict[str, Callable[[Tokens], str]] = {
            "PING": self._ping,
            "ECHO": self._echo,
            "FLUSHALL": self._flushall,
            "SET": self._set,
            "GET": self._get,
            "KEYS": self._keys,
            "TYPE": self._type,
            "DEL": self._del,
            "UNLINK": self._del,
            "EXPIRE": self._expire,
            "RENAME": self._rename,
            "LLEN": self._llen,
            "LPUSH": self._lpush,
            "RPUSH": self._rpush,
            "LPOP": self._lpop,
            "RPOP": self._rpop,
            "LREM": self._lrem,
            "LINDEX": self._lindex,
            "LSET": self._lset,
            "HSET": self._hset,
            "HGET": self._hget,
            "HEXISTS": self._hexists,
            "HDEL": self._hdel,
            "HGETALL": self._hgetall,
            "HKEYS": self._hkeys,
            "HVALS": self._hvals,
            "HLEN": self._hlen,
            "HMSET": self._hmset,
        }

    def process_command(self, command_line: Union[str, bytes, bytearray]) -> str:
        """Run one RESP command and return the RESP-formatted reply.

        Raises ValueError for malformed framing or a non-integer EXPIRE time.
        """
        tokens = parse_resp_command(command_line)
        if not tokens:
            return _error("Empty command")
        name = tokens[0].translate(_UPPER)
        command = self._commands.get(name)
        if command is None:
            return _error(f"Unknown command '{name}'")
        return command(tokens)

    # General

    def _ping(self, tokens: Tokens) -> str:
        return "+PONG\r\n"

    def _echo(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("ECHO command requires a message")
        return f"+{tokens[1]}\r\n"

    def _flushall(self, tokens: Tokens) -> str:
        self._db.flush_all()
        return _OK

    # Keys and strings

    def _set(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("SET requires key and value")
        self._db.set(tokens[1], tokens[2])
        return _OK

    def _get(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("GET requires a key")
        return _optional_bulk(self._db.get(tokens[1]))

    def _keys(self, tokens: Tokens) -> str:
        return _array(self._db.keys())

    def _type(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("TYPE requires a key")
        return f"+{self._db.type(tokens[1])}\r\n"

    def _del(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("DEL requires a key")
        return _integer(1 if self._db.delete(tokens[1]) else 0)

    def _expire(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("EXPIRE requires a key and seconds")
        if self._db.expire(tokens[1], tokens[2]):
            return _OK
        return _error("EXPIRE failed")

    def _rename(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("RENAME requires a old key name and a new key name")
        if self._db.rename(tokens[1], tokens[2]):
            return _OK
        return _error("RENAME failed")

    # Lists

    def _llen(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("LLEN requires a key")
        return _integer(self._db.llen(tokens[1]))

    def _lpush(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("LPUSH requires a key and at least one value")
        key = tokens[1]
        for value in tokens[2:]:
            self._db.lpush(key, value)
        return _integer(self._db.llen(key))

    def _rpush(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("RPUSH requires a key and at least one value")
        key = tokens[1]
        for value in tokens[2:]:
            self._db.rpush(key, value)
        return _integer(self._db.llen(key))

    def _lpop(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("LPOP requires a key")
        return _optional_bulk(self._db.lpop(tokens[1]))

    def _rpop(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("RPOP requires a key")
        return _optional_bulk(self._db.rpop(tokens[1]))

    def _lrem(self, tokens: Tokens) -> str:
        if len(tokens) < 4:
            return _error("LREM requires a key, count and value")
        try:
            count = _parse_int(tokens[2])
        except ValueError:
            return _error("Invalid count for LREM")
        return _integer(self._db.lrem(tokens[1], count, tokens[3]))

    def _lindex(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("LINDEX requires a key and an index")
        try:
            index = _parse_int(tokens[2])
        except ValueError:
            return _error("Invalid index for LINDEX")
        return _optional_bulk(self._db.lindex(tokens[1], index))

    def _lset(self, tokens: Tokens) -> str:
        if len(tokens) < 4:
            return _error("LSET requires a key, index and value")
        try:
            index = _parse_int(tokens[2])
        except ValueError:
            return _error("Invalid index for LSET")
        if self._db.lset(tokens[1], index, tokens[3]):
            return _OK
        return _error("LSET failed")

    # Hashes

    def _hset(self, tokens: Tokens) -> str:
        if len(tokens) < 4:
            return _error("HSET requires a key, field and value")
        self._db.hset(tokens[1], tokens[2], tokens[3])
        return ":1\r\n"

    def _hget(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("HGET requires a key and field")
        return _optional_bulk(self._db.hget(tokens[1], tokens[2]))

    def _hexists(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("HEXISTS requires a key and field")
        return _integer(1 if self._db.hexists(tokens[1], tokens[2]) else 0)

    def _hdel(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("HDEL requires a key and field")
        return _integer(1 if self._db.hdel(tokens[1], tokens[2]) else 0)

    def _hgetall(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("HGETALL requires key")
        flat = [part for pair in self._db.hgetall(tokens[1]).items() for part in pair]
        return _array(flat)

    def _hkeys(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("HKEYS requires key")
        return _array(self._db.hkeys(tokens[1]))

    def _hvals(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("HVALS requires key")
        return _array(self._db.hvals(tokens[1]))

    def _hlen(self, tokens: Tokens) -> str:
        if len(tokens) < 2:
            return _error("HLEN requires a key")
        return _integer(self._db.hlen(tokens[1]))

    def _hmset(self, tokens: Tokens) -> str:
        if len(tokens) < 3:
            return _error("HMSET requires a key and at least one field-value pair")
        key = tokens[1]
        rest = tokens[2:]
        for field, value in zip(rest[::2], rest[1::2]):
            self._db.hset(key, field, value)
        if len(rest) % 2:
            return _error("HMSET requires field and value pairs")
        return _OK