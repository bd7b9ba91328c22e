# tinyredis

tinyredis is a small in-memory key-value server. It answers a subset of the
Redis commands over the Redis wire protocol (RESP). Requests must be RESP
arrays of bulk strings, which is what `redis-cli` sends.

It has no dependencies outside the standard library.

## Installing

```
pip install .
```

## Running the server

```
tinyredis          # listens on port 6379, all interfaces
tinyredis 7000     # listens on port 7000
```

The same can be started with `python -m tinyredis.server [PORT]`.

Each client connection is served in its own thread, all sharing one database.
Every 300 seconds the whole database is written to `dump.my_rdb` in the
current directory. Press Ctrl+C to stop the server; it closes the listening
socket and exits with status 2 (the signal number), without a final dump.

## Supported commands

| Group   | Commands |
|---------|----------|
| General | `PING`, `ECHO`, `FLUSHALL` |
| Keys    | `SET`, `GET`, `KEYS`, `TYPE`, `DEL` / `UNLINK`, `EXPIRE`, `RENAME` |
| Lists   | `LLEN`, `LPUSH`, `RPUSH`, `LPOP`, `RPOP`, `LREM`, `LINDEX`, `LSET` |
| Hashes  | `HSET`, `HGET`, `HEXISTS`, `HDEL`, `HGETALL`, `HKEYS`, `HVALS`, `HLEN`, `HMSET` |

Command names are case-insensitive. Some replies differ from Redis:

- Errors are sent as `-Error: <message>`, e.g. `-Error: Unknown command 'FOO'`.
- `KEYS` ignores any pattern and returns every string, list and hash key.
- `DEL` / `UNLINK` removes the key but always replies `:0`.
- `HSET` always replies `:1`; `HMSET` replies `+OK`.
- `EXPIRE` replies `+OK` for an existing key and `-Error: EXPIRE failed`
  otherwise.
- `LREM` with count 0 removes every match, a positive count removes from the
  head, a negative count from the tail.

## Using it as a library

The store and the command layer can be used without a network:

```python
from tinyredis.database import Database
from tinyredis.commands import CommandHandler, parse_resp_command

db = Database()              # or Database.instance() for the shared store
db.set("greeting", "hello")
db.rpush("queue", "a")
db.hset("user", "name", "alice")

handler = CommandHandler(db)  # defaults to Database.instance()
reply = handler.process_command("*2\r\n$3\r\nGET\r\n$8\r\ngreeting\r\n")
# reply == "$5\r\nhello\r\n"

parse_resp_command("*1\r\n$4\r\nPING\r\n")  # ["PING"]
```

`Database` methods return plain Python values: `get`, `lpop`, `rpop`,
`lindex` and `hget` return `None` when there is nothing to return, and
`hgetall` returns a dict. All methods are thread-safe.

`parse_resp_command` and `CommandHandler.process_command` accept `str` or
`bytes`. Input that is not a RESP array yields no tokens (and the reply
`-Error: Empty command`); a non-integer element count or bulk length raises
`ValueError`.

`Database.dump(filename)` and `Database.load(filename)` save and restore the
store as a plain text file with one record per line (`K key value`,
`L key item...`, `H key field:value...`). Both raise `OSError` if the file
cannot be opened. Items are separated by spaces, so the format only suits
values without whitespace.

To run the server from code:

```python
import threading
from tinyredis.server import RedisServer

server = RedisServer(0)       # 0 picks a free port
thread = threading.Thread(target=server.run)
thread.start()
server.ready.wait()
print(server.port)            # the port actually bound
server.shutdown()
thread.join()                 # run() waits for clients, then dumps to dump.my_rdb
```

`run()` raises `OSError` if the port cannot be bound.

## What it does not do

- Keys never expire: `EXPIRE` records a time but nothing acts on it, and
  expiry times are not saved by `dump`.
- The server does not read `dump.my_rdb` when it starts; call
  `Database.load` yourself to restore a dump.
- Each chunk received from a client (up to 1023 bytes) is handled as exactly
  one command, so pipelined commands and larger requests are not supported.
  A malformed request closes the connection.
- Inline (non-RESP) commands, authentication, pub/sub, transactions and the
  other Redis commands not listed above are not available.

## Running the tests

```
pip install .[test]
pytest
```