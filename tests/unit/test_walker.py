from __future__ import annotations

import copy
from typing import Any, Dict, List

import pytest

from securejson.errors import ResolutionRejectedError
from securejson.walker import extract_token, find_markers, is_marker, walk


class _Recorder:
    def __init__(self, mapping: Dict[str, str] | None = None) -> None:
        self.mapping = mapping or {}
        self.tokens: List[str] = []

    def __call__(self, token: str) -> str:
        self.tokens.append(token)
        return self.mapping.get(token, f"plain({token})")


def _nest(leaf: Any, depth: int) -> Any:
    # Alternate object/array wrappers around `leaf`
    node = leaf
    for i in range(depth):
        node = {"k": node, "n": i} if i % 2 == 0 else [i, node]
    return node


def test_identity_without_markers():
    doc = {
        "name": "svc",
        "port": 8080,
        "ratio": 0.5,
        "enabled": True,
        "missing": None,
        "tags": ["a", "insecure:x", {"deep": ["Secure:y", 1, False]}],
        "empty_obj": {},
        "empty_list": [],
    }
    rec = _Recorder()
    out = walk(doc, rec)
    assert out == doc
    assert rec.tokens == []


def test_end_to_end_example():
    rec = _Recorder({"abc123": "s3cr3t"})
    out = walk({"user": "alice", "pass": "secure:abc123"}, rec)
    assert out == {"user": "alice", "pass": "s3cr3t"}
    assert rec.tokens == ["abc123"]


def test_array_order_preserved():
    rec = _Recorder({"a": "X", "b": "Y"})
    out = walk(["secure:a", 1, "secure:b"], rec)
    assert out == ["X", 1, "Y"]
    # Arrays are walked in index order
    assert rec.tokens == ["a", "b"]


@pytest.mark.parametrize("depth", [0, 1, 5])
def test_nested_marker_resolved_at_any_depth(depth: int):
    rec = _Recorder({"tok": "value"})
    out = walk(_nest("secure:tok", depth), rec)
    assert out == _nest("value", depth)
    assert rec.tokens == ["tok"]


def test_object_keys_preserved_and_never_resolved():
    doc = {"secure:key": "plain", "other": "secure:v", "n": 3}
    out = walk(doc, _Recorder({"v": "V"}))
    assert list(out.keys()) == ["secure:key", "other", "n"]
    assert out == {"secure:key": "plain", "other": "V", "n": 3}


def test_input_is_not_mutated():
    doc = {"a": ["secure:1", {"b": "secure:2"}]}
    before = copy.deepcopy(doc)
    out = walk(doc, _Recorder())
    assert doc == before
    assert out == {"a": ["plain(1)", {"b": "plain(2)"}]}


@pytest.mark.parametrize("value", ["insecure:foo", "Secure:foo", "SECURE:foo", " secure:foo", "secure", ""])
def test_prefix_is_strict(value: str):
    rec = _Recorder()
    assert walk(value, rec) == value
    assert rec.tokens == []
    assert not is_marker(value)


def test_empty_token_is_forwarded():
    rec = _Recorder({"": "from-empty"})
    assert walk({"x": "secure:"}, rec) == {"x": "from-empty"}
    assert rec.tokens == [""]


def test_token_split_on_first_colon_only():
    assert extract_token("secure:a:b:c") == "a:b:c"
    rec = _Recorder()
    walk(["secure:a:b:c"], rec)
    assert rec.tokens == ["a:b:c"]


def test_plaintext_replaces_whole_string_even_if_it_looks_like_a_marker():
    # Replacement output is not walked again
    rec = _Recorder({"t": "secure:again"})
    assert walk({"x": "secure:t"}, rec) == {"x": "secure:again"}
    assert rec.tokens == ["t"]


def test_other_scalars_pass_through():
    for v in (0, -1, 3.25, True, False, None):
        assert walk(v, _Recorder()) is v


def test_unsupported_type_raises():
    with pytest.raises(TypeError):
        walk({"a": {1, 2}}, _Recorder())


def test_fail_fast_stops_at_first_error_and_tags_path():
    calls: List[str] = []

    def resolve(token: str) -> str:
        calls.append(token)
        if token == "bad":
            raise ResolutionRejectedError(400, "cannot decrypt")
        return "ok"

    doc = {"servers": [{"pw": "secure:good"}, {"pw": "secure:bad"}, {"pw": "secure:never"}]}
    with pytest.raises(ResolutionRejectedError) as ei:
        walk(doc, resolve)

    assert calls == ["good", "bad"]
    assert ei.value.path == "$.servers[1].pw"
    assert "$.servers[1].pw" in str(ei.value)


def test_non_resolver_errors_propagate_unchanged():
    def resolve(_token: str) -> str:
        raise KeyError("boom")

    with pytest.raises(KeyError):
        walk(["secure:x"], resolve)


def test_find_markers_lists_locations():
    doc = {
        "db": {"password": "secure:p", "user": "u"},
        "list": [1, "secure:q", ["secure:"]],
        "odd key": "secure:r",
        "flag": True,
    }
    assert find_markers(doc) == [
        "$.db.password",
        "$.list[1]",
        "$.list[2][0]",
        "$['odd key']",
    ]


def test_find_markers_on_plain_document_is_empty():
    assert find_markers({"a": ["b", 1, None]}) == []
    assert find_markers("secure:root") == ["$"]


@pytest.mark.parametrize("depth", [1000, 5000])
def test_deep_nesting_beyond_recursion_limit(depth: int):
    rec = _Recorder({"tok": "value"})
    doc = _nest("secure:tok", depth)

    out = walk(doc, rec)

    assert rec.tokens == ["tok"]
    node = out
    for i in reversed(range(depth)):
        if i % 2 == 0:
            assert node["n"] == i
            node = node["k"]
        else:
            assert node[0] == i
            node = node[1]
    assert node == "value"


def test_find_markers_deep_nesting():
    doc: Any = "secure:x"
    for _ in range(5000):
        doc = [doc]
    assert find_markers(doc) == ["$" + "[0]" * 5000]
