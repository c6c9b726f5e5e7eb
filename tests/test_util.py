"""Tests for timestamps, default document keys and cycle removal."""

import json
import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from pydantic import BaseModel

from couchlog.util import decycle, isoformat, key_fun


def test_isoformat_is_fixed_width_utc():
    dt = datetime(2025, 2, 11, 12, 0, 0, tzinfo=timezone.utc)
    assert isoformat(dt) == "2025-02-11T12:00:00.000000Z"
    assert isoformat(dt.replace(microsecond=5)) == "2025-02-11T12:00:00.000005Z"


def test_isoformat_converts_offsets_to_utc():
    plus_two = datetime(2025, 2, 11, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert isoformat(plus_two) == "2025-02-11T12:00:00.000000Z"


def test_isoformat_naive_is_local_time():
    naive = datetime(2025, 2, 11, 12, 0, 0)
    assert isoformat(naive) == isoformat(naive.astimezone())


def test_key_fun_shape():
    key = key_fun()
    ts, uid = key[:27], key[28:]
    assert key[27] == "-"
    assert ts.endswith("Z")
    assert len(uid) == 36


def test_key_fun_unique_within_same_instant():
    fixed = datetime(2025, 2, 11, 12, 0, 0, tzinfo=timezone.utc)
    with patch("couchlog.util.utcnow", return_value=fixed):
        keys = [key_fun() for _ in range(500)]
    assert len(set(keys)) == 500
    assert all(k.startswith("2025-02-11T12:00:00.000000Z-") for k in keys)


def test_key_fun_unique_across_threads():
    keys: list[str] = []
    lock = threading.Lock()

    def worker():
        local = [key_fun() for _ in range(200)]
        with lock:
            keys.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(keys) == len(set(keys)) == 1600


def test_key_fun_sorts_like_creation_instants():
    base = datetime(2025, 2, 11, 9, 59, 59, 999990, tzinfo=timezone.utc)
    instants = [base + timedelta(microseconds=3 * i) for i in range(20)]
    instants += [base + timedelta(days=400, hours=i) for i in range(5)]
    with patch("couchlog.util.utcnow", side_effect=instants):
        keys = [key_fun() for _ in instants]
    assert sorted(keys) == keys


def test_decycle_self_reference():
    meta = {"user": "a"}
    meta["self"] = meta
    out = decycle(meta)
    assert out == {"user": "a", "self": {"$ref": "$"}}
    json.dumps(out)


def test_decycle_back_reference_to_ancestor_uses_path():
    root = {"children": []}
    child = {"name": "c", "parent": root}
    root["children"].append(child)
    child["me"] = child
    out = decycle(root)
    assert out["children"][0]["parent"] == {"$ref": "$"}
    assert out["children"][0]["me"] == {"$ref": '$["children"][0]'}


def test_decycle_deep_graph_is_finite():
    root: dict = {}
    node = root
    for i in range(50):
        nxt = {"i": i, "up": root, "siblings": [node, node]}
        node["next"] = nxt
        node = nxt
    text = json.dumps(decycle(root))
    assert '"$ref": "$"' in text


def test_decycle_does_not_mutate_input_and_copies():
    meta = {"a": [1, 2, {"b": 3}]}
    out = decycle(meta)
    out["a"][2]["b"] = 99
    assert meta == {"a": [1, 2, {"b": 3}]}


def test_decycle_converts_non_json_values():
    class Point(BaseModel):
        x: int
        y: int

    when = datetime(2025, 2, 11, 12, 0, 0, tzinfo=timezone.utc)
    out = decycle({"when": when, "pair": (1, 2), "pt": Point(x=1, y=2), 3: object})
    assert out["when"] == "2025-02-11T12:00:00.000000Z"
    assert out["pair"] == [1, 2]
    assert out["pt"] == {"x": 1, "y": 2}
    assert out["3"] == str(object)


def test_decycle_scalars_pass_through():
    assert decycle(None) is None
    assert decycle("x") == "x"
    assert decycle(1.5) == 1.5


def test_decycle_colliding_keys_keep_first():
    out = decycle({1: "int", "1": "str", "a": 2})
    assert out == {"1": "int", "a": 2}
