"""Tests for message tree construction."""

from conftest import make_message

from ccx.models import MessageKind
from ccx.tree import build_message_tree, flatten_messages


def placements(roots):
    """Count how many times each message appears in the forest."""
    counts = {}
    for message in flatten_messages(roots):
        counts[id(message)] = counts.get(id(message), 0) + 1
    return counts


class TestBuildMessageTree:
    def test_linear_chain(self):
        u1 = make_message("u1")
        a1 = make_message("a1", MessageKind.ASSISTANT, parent_uuid="u1")
        u2 = make_message("u2", parent_uuid="a1")
        roots = build_message_tree([u1, a1, u2])
        assert roots == [u1]
        assert u1.children == [a1]
        assert a1.children == [u2]

    def test_sibling_order_matches_input(self):
        u1 = make_message("u1")
        children = [make_message(f"a{i}", MessageKind.ASSISTANT, parent_uuid="u1") for i in range(5)]
        build_message_tree([u1, *children])
        assert [c.uuid for c in u1.children] == ["a0", "a1", "a2", "a3", "a4"]

    def test_child_before_parent_in_input(self):
        a1 = make_message("a1", MessageKind.ASSISTANT, parent_uuid="u1")
        u1 = make_message("u1")
        roots = build_message_tree([a1, u1])
        assert roots == [u1]
        assert u1.children == [a1]

    def test_dangling_parent_becomes_root(self):
        u1 = make_message("u1")
        orphan = make_message("a9", MessageKind.ASSISTANT, parent_uuid="missing")
        roots = build_message_tree([u1, orphan])
        assert roots == [u1, orphan]

    def test_multiple_roots(self):
        u1 = make_message("u1")
        u2 = make_message("u2")
        assert build_message_tree([u1, u2]) == [u1, u2]

    def test_self_parent_is_root(self):
        u1 = make_message("u1", parent_uuid="u1")
        roots = build_message_tree([u1])
        assert roots == [u1]
        assert u1.children == []

    def test_cycle_is_broken(self):
        a = make_message("a", parent_uuid="b")
        b = make_message("b", parent_uuid="a")
        c = make_message("c", parent_uuid="a")
        roots = build_message_tree([a, b, c])
        assert roots == [a]
        counts = placements(roots)
        assert len(counts) == 3
        assert set(counts.values()) == {1}

    def test_cycle_cut_keeps_descendant_parent(self):
        c = make_message("c", parent_uuid="a")
        a = make_message("a", parent_uuid="b")
        b = make_message("b", parent_uuid="a")
        roots = build_message_tree([c, a, b])
        assert roots == [a]
        assert a.children == [c, b]
        assert b.children == []

    def test_cycle_cut_at_first_member_in_input(self):
        d = make_message("d", parent_uuid="c")
        b = make_message("b", parent_uuid="c")
        c = make_message("c", parent_uuid="b")
        roots = build_message_tree([d, b, c])
        assert roots == [b]
        assert b.children == [c]
        assert c.children == [d]

    def test_every_message_placed_once(self):
        messages = [make_message("u1")]
        for i in range(1, 30):
            parent = f"m{i // 2}" if i > 1 else "u1"
            messages.append(make_message(f"m{i}", parent_uuid=parent))
        messages.append(make_message("orphan", parent_uuid="gone"))
        messages.append(make_message("", parent_uuid="m3"))

        roots = build_message_tree(messages)
        counts = placements(roots)
        assert len(counts) == len(messages)
        assert set(counts.values()) == {1}

    def test_duplicate_uuid_first_owns_children(self):
        first = make_message("u1")
        dup = make_message("u1")
        child = make_message("a1", MessageKind.ASSISTANT, parent_uuid="u1")
        roots = build_message_tree([first, dup, child])
        assert roots == [first, dup]
        assert first.children == [child]
        assert dup.children == []

    def test_empty(self):
        assert build_message_tree([]) == []


class TestFlattenMessages:
    def test_depth_first_preorder(self):
        u1 = make_message("u1")
        a1 = make_message("a1", parent_uuid="u1")
        a2 = make_message("a2", parent_uuid="u1")
        t1 = make_message("t1", parent_uuid="a1")
        u2 = make_message("u2")
        roots = build_message_tree([u1, a1, a2, t1, u2])
        assert [m.uuid for m in flatten_messages(roots)] == ["u1", "a1", "t1", "a2", "u2"]

    def test_deep_chain_does_not_recurse(self):
        messages = [make_message("m0")]
        for i in range(1, 5000):
            messages.append(make_message(f"m{i}", parent_uuid=f"m{i - 1}"))
        roots = build_message_tree(messages)
        assert len(flatten_messages(roots)) == 5000
