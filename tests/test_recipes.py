"""Tests for shadowcopy.recipes."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from shadowcopy.custom_types import Op
from shadowcopy.recipes import ABSENT, Change, fluent, guard_private, watch
from shadowcopy.shadow_copy import ShadowCopy, unwrap


class TestWatch:
    """watch() reports mutations anywhere in the graph."""

    def test_reports_item_assignment(self):
        changes: list[Change] = []
        raw = {"user": {"name": "ada"}}
        state = watch(raw, changes.append)

        state["user"]["name"] = "grace"

        assert changes == [Change(Op.SET_ITEM, ("user", "name"), "ada", "grace")]
        assert raw["user"]["name"] == "grace"

    def test_reports_attribute_assignment(self):
        """Sneaky writes through an alias are still seen."""
        changes: list[Change] = []
        p = watch(SimpleNamespace(foo=SimpleNamespace(bar="val")), changes.append)

        def sneak(val: SimpleNamespace) -> None:
            val.foo.bar = "sneak!"

        sneak(p)

        assert changes == [Change(Op.SET, ("foo", "bar"), "val", "sneak!")]

    def test_creation_and_deletion(self):
        changes: list[Change] = []
        raw: dict[str, object] = {}
        state = watch(raw, changes.append)

        state["new"] = 1
        del state["new"]

        assert changes == [
            Change(Op.SET_ITEM, ("new",), ABSENT, 1),
            Change(Op.DELETE_ITEM, ("new",), 1, ABSENT),
        ]
        assert raw == {}

    def test_attribute_deletion(self):
        changes: list[Change] = []
        raw = SimpleNamespace(a=SimpleNamespace(b=1))
        p = watch(raw, changes.append)

        del p.a.b

        assert changes == [Change(Op.DELETE_PROPERTY, ("a", "b"), 1, ABSENT)]
        assert not hasattr(raw.a, "b")

    def test_reports_writes_to_iterated_elements(self):
        changes: list[Change] = []
        raw = {"rows": [{"x": 1}, {"x": 1}]}
        state = watch(raw, changes.append)

        for row in state["rows"]:
            row["x"] = 2

        assert changes == [
            Change(Op.SET_ITEM, ("rows", 0, "x"), 1, 2),
            Change(Op.SET_ITEM, ("rows", 1, "x"), 1, 2),
        ]
        assert raw == {"rows": [{"x": 2}, {"x": 2}]}

    def test_reports_writes_made_by_methods(self):
        class Counter:
            def __init__(self) -> None:
                self.count = 0

            def inc(self) -> None:
                self.count += 1

        changes: list[Change] = []
        raw = {"c": Counter()}
        state = watch(raw, changes.append)

        state["c"].inc()

        assert changes == [Change(Op.SET, ("c", "count"), 0, 1)]
        assert raw["c"].count == 1

    def test_reads_are_not_reported(self):
        changes: list[Change] = []
        p = watch({"a": {"b": 1}}, changes.append)
        assert p["a"]["b"] == 1
        assert changes == []

    def test_veto(self):
        def on_change(change: Change) -> None:
            raise ValueError(f"read-only: {change.path}")

        raw = {"a": 1}
        state = watch(raw, on_change)

        with pytest.raises(ValueError, match="read-only"):
            state["a"] = 2
        assert raw == {"a": 1}

    def test_include_exclude(self):
        changes: list[Change] = []
        state = watch(
            {"user": {"name": "ada"}, "secret": {"k": 0}, "other": 0},
            changes.append,
            include=["user.*", "secret"],
            exclude=["secret"],
        )

        state["user"]["name"] = "grace"
        state["secret"]["k"] = 1
        state["other"] = 1

        assert [c.path for c in changes] == [("user", "name")]

    def test_returns_shadow_copy(self):
        raw = {"a": 1}
        p = watch(raw, lambda change: None)
        assert isinstance(p, ShadowCopy)
        assert unwrap(p) is raw

    def test_absent_repr(self):
        assert repr(ABSENT) == "ABSENT"


class TestGuardPrivate:
    """guard_private() rejects writes to private members."""

    def test_private_items(self):
        p = guard_private({"foo": {"bar": "val", "_private": None}})

        p["foo"]["bar"] = "val2"
        assert p["foo"]["bar"] == "val2"

        with pytest.raises(KeyError, match="private"):
            p["foo"]["_private"] = "val2"
        with pytest.raises(KeyError, match="private"):
            del p["foo"]["_private"]
        assert unwrap(p["foo"])["_private"] is None

    def test_private_attributes(self):
        raw = SimpleNamespace(_secret=1, public=2)
        p = guard_private(raw)

        p.public = 3
        assert raw.public == 3
        assert p._secret == 1

        with pytest.raises(AttributeError, match="Invalid attempt to modify private"):
            p._secret = 0
        with pytest.raises(AttributeError, match="private"):
            del p._secret
        assert raw._secret == 1

    def test_non_string_keys_are_allowed(self):
        p = guard_private({0: "a"})
        p[0] = "b"
        assert unwrap(p) == {0: "b"}

    def test_custom_prefix(self):
        p = guard_private({"nested": {}}, prefix="x_")
        p["nested"]["_ok"] = 1
        with pytest.raises(KeyError):
            p["nested"]["x_no"] = 1

    def test_error_names_owner(self):
        p = guard_private(SimpleNamespace(a=SimpleNamespace(b=SimpleNamespace())))
        with pytest.raises(AttributeError, match=r"of a\.b"):
            p.a.b._hidden = 1


class TestFluent:
    """fluent() turns attribute chains into calls."""

    def test_query_builder(self):
        db = fluent(lambda path, args, kwargs: (path, args))
        assert db.select.frm.where("a == b") == (("select", "frm", "where"), ("a == b",))

    def test_keyword_arguments(self):
        calls: list[tuple[object, ...]] = []
        db = fluent(lambda path, args, kwargs: calls.append((path, args, kwargs)))

        db.insert(table="t")
        db.insert.into("t", 1)

        assert calls == [
            (("insert",), (), {"table": "t"}),
            (("insert", "into"), ("t", 1), {}),
        ]

    def test_links_are_stable(self):
        db = fluent(lambda path, args, kwargs: path)
        assert db.select is db.select
        assert db.select.frm is db.select.frm
        assert db.select is not db.insert

    def test_root_call(self):
        db = fluent(lambda path, args, kwargs: path)
        assert db() == ()
