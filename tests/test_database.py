import threading

import pytest

from tinyredis.database import Database


@pytest.fixture
def db():
    return Database()


def test_instance_is_shared():
    first = Database.instance()
    first.set("shared-probe", "value")
    try:
        assert Database.instance().get("shared-probe") == "value"
    finally:
        first.delete("shared-probe")
    assert Database.instance().get("shared-probe") is None


def test_set_and_get(db):
    db.set("name", "alice")
    assert db.get("name") == "alice"
    assert db.get("missing") is None


def test_set_overwrites(db):
    db.set("k", "one")
    db.set("k", "two")
    assert db.get("k") == "two"


def test_get_ignores_other_types(db):
    db.rpush("lst", "a")
    assert db.get("lst") is None


def test_keys_order_by_store(db):
    db.hset("h", "f", "v")
    db.rpush("l", "x")
    db.set("s", "y")
    assert db.keys() == ["s", "l", "h"]


def test_type(db):
    db.set("s", "v")
    db.lpush("l", "v")
    db.hset("h", "f", "v")
    assert db.type("s") == "string"
    assert db.type("l") == "list"
    assert db.type("h") == "hash"
    assert db.type("nope") == "none"


def test_delete_removes_but_reports_false(db):
    db.set("s", "v")
    db.rpush("s", "x")
    assert db.delete("s") is False
    assert db.type("s") == "none"
    assert "s" not in db.keys()


def test_flush_all(db):
    db.set("s", "v")
    db.rpush("l", "v")
    db.hset("h", "f", "v")
    db.flush_all()
    assert db.keys() == []


def test_expire_existing_and_missing(db):
    db.set("s", "v")
    assert db.expire("s", "10") is True
    assert db.expire("missing", "10") is False
    assert db.expire("s", 5) is True


def test_expire_accepts_trailing_text(db):
    db.set("s", "v")
    assert db.expire("s", " 10abc") is True


@pytest.mark.parametrize("bad", ["abc", "", "99999999999"])
def test_expire_invalid_seconds(db, bad):
    db.set("s", "v")
    with pytest.raises(ValueError):
        db.expire("s", bad)


def test_expire_missing_key_does_not_parse(db):
    assert db.expire("missing", "abc") is False


def test_rename_moves_value(db):
    db.set("old", "v")
    assert db.rename("old", "new") is True
    assert db.get("new") == "v"
    assert db.get("old") is None


def test_rename_moves_list_and_hash(db):
    db.rpush("old", "a")
    db.hset("old", "f", "v")
    assert db.rename("old", "new") is True
    assert db.lindex("new", 0) == "a"
    assert db.hget("new", "f") == "v"
    assert db.llen("old") == 0


def test_rename_missing(db):
    assert db.rename("a", "b") is False


def test_rename_with_only_expiry_left(db):
    db.set("k", "v")
    db.expire("k", "100")
    db.delete("k")
    assert db.rename("k", "other") is True


def test_push_and_pop(db):
    db.rpush("l", "b")
    db.lpush("l", "a")
    db.rpush("l", "c")
    assert db.llen("l") == 3
    assert db.lpop("l") == "a"
    assert db.rpop("l") == "c"
    assert db.lpop("l") == "b"
    assert db.lpop("l") is None
    assert db.rpop("missing") is None


def test_empty_list_keeps_key(db):
    db.rpush("l", "a")
    db.lpop("l")
    assert db.type("l") == "list"
    assert db.llen("l") == 0


def test_lrem_all(db):
    for item in ["a", "b", "a", "c", "a"]:
        db.rpush("l", item)
    assert db.lrem("l", 0, "a") == 3
    assert [db.lindex("l", i) for i in range(db.llen("l"))] == ["b", "c"]


def test_lrem_from_head(db):
    for item in ["a", "b", "a", "c", "a"]:
        db.rpush("l", item)
    assert db.lrem("l", 2, "a") == 2
    assert [db.lindex("l", i) for i in range(db.llen("l"))] == ["b", "c", "a"]


def test_lrem_from_tail(db):
    for item in ["a", "b", "a", "c", "a"]:
        db.rpush("l", item)
    assert db.lrem("l", -2, "a") == 2
    assert [db.lindex("l", i) for i in range(db.llen("l"))] == ["a", "b", "c"]


def test_lrem_missing_key(db):
    assert db.lrem("nope", 0, "a") == 0


def test_lindex(db):
    for item in ["x", "y", "z"]:
        db.rpush("l", item)
    assert db.lindex("l", 0) == "x"
    assert db.lindex("l", -1) == "z"
    assert db.lindex("l", 3) is None
    assert db.lindex("l", -4) is None
    assert db.lindex("missing", 0) is None


def test_lset(db):
    for item in ["x", "y", "z"]:
        db.rpush("l", item)
    assert db.lset("l", 1, "Y") is True
    assert db.lset("l", -1, "Z") is True
    assert db.lindex("l", 1) == "Y"
    assert db.lindex("l", 2) == "Z"
    assert db.lset("l", 5, "q") is False
    assert db.lset("missing", 0, "q") is False


def test_hash_operations(db):
    assert db.hset("h", "f1", "v1") is True
    db.hset("h", "f2", "v2")
    assert db.hget("h", "f1") == "v1"
    assert db.hget("h", "nope") is None
    assert db.hget("missing", "f1") is None
    assert db.hexists("h", "f2") is True
    assert db.hexists("h", "nope") is False
    assert db.hlen("h") == 2
    assert db.hkeys("h") == ["f1", "f2"]
    assert db.hvals("h") == ["v1", "v2"]
    assert db.hgetall("h") == {"f1": "v1", "f2": "v2"}


def test_hdel(db):
    db.hset("h", "f", "v")
    assert db.hdel("h", "f") is True
    assert db.hdel("h", "f") is False
    assert db.hdel("missing", "f") is False
    assert db.hlen("h") == 0


def test_hash_missing_key(db):
    assert db.hgetall("missing") == {}
    assert db.hkeys("missing") == []
    assert db.hvals("missing") == []
    assert db.hlen("missing") == 0


def test_hgetall_returns_copy(db):
    db.hset("h", "f", "v")
    snapshot = db.hgetall("h")
    snapshot["f"] = "changed"
    assert db.hget("h", "f") == "v"


def test_hmset(db):
    assert db.hmset("h", {"a": "1", "b": "2"}) is True
    assert db.hgetall("h") == {"a": "1", "b": "2"}


def test_dump_format(db, tmp_path):
    db.set("name", "alice")
    db.rpush("letters", "a")
    db.rpush("letters", "b")
    db.hset("user", "id", "7")
    path = tmp_path / "dump.my_rdb"
    db.dump(path)
    assert path.read_text(encoding="utf-8") == (
        "K name alice\nL letters a b\nH user id:7\n"
    )


def test_dump_load_round_trip(db, tmp_path):
    db.set("s", "value")
    for item in ["a", "b", "c"]:
        db.rpush("l", item)
    db.hmset("h", {"f1": "v1", "f2": "v2"})
    path = tmp_path / "data.rdb"
    db.dump(path)

    other = Database()
    other.set("stale", "x")
    other.load(path)
    assert other.get("s") == "value"
    assert [other.lindex("l", i) for i in range(other.llen("l"))] == ["a", "b", "c"]
    assert other.hgetall("h") == {"f1": "v1", "f2": "v2"}
    assert other.get("stale") is None


def test_load_parses_colon_in_value_and_skips_bad_pairs(db, tmp_path):
    path = tmp_path / "data.rdb"
    path.write_text("H h a:b:c nocolon d:\n\nK onlykey\n", encoding="utf-8")
    db.load(path)
    assert db.hgetall("h") == {"a": "b:c", "d": ""}
    assert db.get("onlykey") == ""


def test_load_missing_file(db, tmp_path):
    db.set("keep", "v")
    with pytest.raises(OSError):
        db.load(tmp_path / "absent.rdb")
    assert db.get("keep") == "v"


def test_concurrent_pushes(db):
    def worker():
        for _ in range(200):
            db.rpush("l", "x")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert db.llen("l") == 800