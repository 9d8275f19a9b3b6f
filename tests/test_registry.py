"""Tests for ConnectionRegistry."""

from registry import ConnectionRegistry


class TestJoin:
    def test_join_counts_connection_once(self) -> None:
        registry = ConnectionRegistry()

        assert registry.join("a", "general") is True
        assert registry.join("a", "general") is False

        assert registry.count_of("general") == 1

    def test_count_of_unknown_room_is_zero(self) -> None:
        assert ConnectionRegistry().count_of("nowhere") == 0

    def test_connection_can_be_in_several_rooms(self) -> None:
        registry = ConnectionRegistry()
        registry.join("a", "general")
        registry.join("a", "random")
        registry.join("b", "random")

        assert registry.rooms_of("a") == {"general", "random"}
        assert registry.count_of("general") == 1
        assert registry.count_of("random") == 2


class TestLeave:
    def test_leave_all_returns_affected_rooms(self) -> None:
        registry = ConnectionRegistry()
        registry.join("a", "general")
        registry.join("a", "random")
        registry.join("b", "random")

        affected = registry.leave_all("a")

        assert affected == {"general", "random"}
        assert registry.count_of("general") == 0
        assert registry.count_of("random") == 1
        assert registry.rooms_of("a") == set()

    def test_leave_all_for_unknown_connection_is_empty(self) -> None:
        assert ConnectionRegistry().leave_all("ghost") == set()

    def test_empty_rooms_are_pruned(self) -> None:
        registry = ConnectionRegistry()
        registry.join("a", "general")
        registry.leave_all("a")

        assert "general" not in registry.rooms()
        assert registry.members("general") == set()

    def test_leave_single_room(self) -> None:
        registry = ConnectionRegistry()
        registry.join("a", "general")
        registry.join("a", "random")

        assert registry.leave("a", "general") is True
        assert registry.leave("a", "general") is False
        assert registry.rooms_of("a") == {"random"}
        assert registry.count_of("general") == 0


def test_count_matches_distinct_members_over_mixed_sequence() -> None:
    registry = ConnectionRegistry()
    expected: dict[str, set[str]] = {}
    operations = [
        ("join", "a", "x"),
        ("join", "b", "x"),
        ("join", "a", "x"),
        ("join", "c", "y"),
        ("leave_all", "a", None),
        ("join", "a", "y"),
        ("join", "b", "y"),
        ("leave_all", "b", None),
        ("join", "d", "x"),
    ]

    for op, connection_id, room in operations:
        if op == "join":
            registry.join(connection_id, room)
            expected.setdefault(room, set()).add(connection_id)
        else:
            registry.leave_all(connection_id)
            for members in expected.values():
                members.discard(connection_id)

        for name, members in expected.items():
            assert registry.count_of(name) == len(members)
