"""Tests for the fallback dataset and the local-only mutation strategy."""

from studysync.modules.study_groups.fallback import LocalGroupFallback, get_fallback_study_groups
from studysync.modules.study_groups.schemas import StudyGroupCreate


class TestFallbackDataset:
    def test_three_distinct_groups(self) -> None:
        groups = get_fallback_study_groups()

        assert [g.id for g in groups] == ["1", "2", "3"]
        assert len({g.name for g in groups}) == 3
        assert groups[1].is_private is True

    def test_each_call_returns_fresh_objects(self) -> None:
        first = get_fallback_study_groups()
        first[0].members.clear()

        assert len(get_fallback_study_groups()[0].members) == 2

    def test_creators_are_on_their_rosters(self) -> None:
        for group in get_fallback_study_groups():
            assert group.created_by.id in {m.id for m in group.members}


class TestLocalGroupFallback:
    def test_create_has_single_member_roster(self, alice) -> None:
        data = StudyGroupCreate(name="Algo Club", subject="CS", description="d", max_members=5, tags=["a", "a"])

        group = LocalGroupFallback().create(data, alice)

        assert group.created_by.id == alice.id
        assert [m.id for m in group.members] == [alice.id]
        assert group.tags == ["a"]

    def test_join_is_idempotent(self, alice) -> None:
        fallback = LocalGroupFallback()
        groups = get_fallback_study_groups()

        groups = fallback.join(groups, "2", alice)
        groups = fallback.join(groups, "2", alice)

        assert [m.id for m in groups[1].members].count(alice.id) == 1

    def test_join_unknown_group_changes_nothing(self, alice) -> None:
        groups = get_fallback_study_groups()

        rebuilt = LocalGroupFallback().join(groups, "missing", alice)

        assert [len(g.members) for g in rebuilt] == [len(g.members) for g in groups]

    def test_leave_removes_only_from_that_group(self, alice) -> None:
        fallback = LocalGroupFallback()
        groups = fallback.join(fallback.join(get_fallback_study_groups(), "1", alice), "3", alice)

        groups = fallback.leave(groups, "1", alice)

        assert alice.id not in {m.id for m in groups[0].members}
        assert alice.id in {m.id for m in groups[2].members}
