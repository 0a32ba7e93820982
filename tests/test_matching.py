"""Tests for the matching engine."""

import pytest

from stickerswap.models.failure import FailureKind, KnownError, NotFoundError
from stickerswap.models.match import MatchFilters
from stickerswap.services.matching import (
    NO_WANTS_MESSAGE,
    find_compatible_with,
    find_holders_of_sticker,
    find_matches,
    score_match,
)


class TestScoreMatch:
    def test_reciprocal_counts_double(self, store) -> None:
        s1, s2, s3 = (store.stickers[f"bra-{n}"] for n in (1, 2, 3))

        assert score_match([s1], []) == 1
        assert score_match([s1], [s2]) == 3
        assert score_match([s1, s3], [s2]) == 4

    def test_monotonic_in_both_sets(self, store) -> None:
        """Adding a sticker on either side strictly raises the score."""
        s = [store.stickers[f"bra-{n}"] for n in range(1, 7)]

        base = score_match(s[:2], s[2:3])
        assert score_match(s[:3], s[3:4]) > base
        assert score_match(s[:2], s[2:4]) > base


class TestFindMatches:
    async def test_one_sided_match(self, store) -> None:
        """A wants S1, B holds S1 and wants nothing from A: score 1."""
        store.want("alice", "bra-1")
        store.own("bob", "bra-1")

        result = await find_matches(store, "alice")

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.user.id == "bob"
        assert [s.id for s in match.can_offer] == ["bra-1"]
        assert match.wants == []
        assert match.match_score == 1

    async def test_two_sided_match(self, store) -> None:
        """Reciprocal demand: 1 + 2 * 1 = 3."""
        store.want("alice", "bra-1")
        store.own("alice", "bra-2", quantity=2)
        store.own("bob", "bra-1")
        store.want("bob", "bra-2")

        result = await find_matches(store, "alice")

        match = result.matches[0]
        assert [s.id for s in match.wants] == ["bra-2"]
        assert match.match_score == 3
        assert result.wanted_count == 1
        assert result.tradable_count == 1

    async def test_empty_wants_gives_message(self, store) -> None:
        """No wanted stickers: empty result with guidance, not an error."""
        store.own("alice", "bra-2")
        store.own("bob", "bra-2")

        result = await find_matches(store, "alice")

        assert result.matches == []
        assert result.message == NO_WANTS_MESSAGE
        assert result.tradable_count == 1

    async def test_nobody_has_what_i_want(self, store) -> None:
        store.want("alice", "bra-1")

        result = await find_matches(store, "alice")

        assert result.matches == []
        assert result.message is None
        assert result.wanted_count == 1

    async def test_candidate_who_only_wants_is_not_a_match(self, store) -> None:
        """Reciprocal demand alone does not make someone a candidate."""
        store.want("alice", "bra-1")
        store.own("alice", "bra-2")
        store.want("bob", "bra-2")

        result = await find_matches(store, "alice")

        assert result.matches == []

    async def test_excludes_self_inactive_and_not_for_trade(self, store) -> None:
        store.want("alice", "bra-1")
        store.own("alice", "bra-1")
        store.own("dave", "bra-1")
        store.own("bob", "bra-1", for_trade=False)

        result = await find_matches(store, "alice")

        assert result.matches == []

    async def test_ranked_by_score(self, store) -> None:
        store.want("alice", "bra-1")
        store.want("alice", "bra-3")
        store.own("alice", "bra-2")
        store.own("bob", "bra-1")
        store.own("carol", "bra-1")
        store.own("carol", "bra-3")
        store.want("carol", "bra-2")

        result = await find_matches(store, "alice")

        assert [m.user.id for m in result.matches] == ["carol", "bob"]
        assert [m.match_score for m in result.matches] == [4, 1]

    async def test_equal_scores_ordered_by_nickname(self, store) -> None:
        """Ties are broken by nickname, case-insensitively, then id."""
        store.add_user("zed", nickname="aaron")
        store.want("alice", "bra-1")
        store.own("carol", "bra-1")
        store.own("bob", "bra-1")
        store.own("zed", "bra-1")

        result = await find_matches(store, "alice")

        assert [m.user.nickname for m in result.matches] == ["aaron", "Bob", "Carol"]
        assert len({m.match_score for m in result.matches}) == 1

    async def test_limit_truncates(self, store) -> None:
        store.want("alice", "bra-1")
        store.own("bob", "bra-1")
        store.own("carol", "bra-1")

        result = await find_matches(store, "alice", MatchFilters(limit=1))

        assert [m.user.id for m in result.matches] == ["bob"]

    async def test_limit_must_be_positive(self, store) -> None:
        with pytest.raises(KnownError) as exc_info:
            await find_matches(store, "alice", MatchFilters(limit=0))

        assert exc_info.value.kind == FailureKind.INVALID_INPUT

    async def test_city_filter(self, store) -> None:
        store.want("alice", "bra-1")
        store.own("bob", "bra-1")
        store.own("carol", "bra-1")

        result = await find_matches(store, "alice", MatchFilters(city="Rio de Janeiro"))

        assert [m.user.id for m in result.matches] == ["carol"]

    async def test_state_filter(self, store) -> None:
        store.want("alice", "bra-1")
        store.own("bob", "bra-1")
        store.own("carol", "bra-1")

        result = await find_matches(store, "alice", MatchFilters(state="SP"))

        assert [m.user.id for m in result.matches] == ["bob"]

    async def test_album_filter(self, store) -> None:
        """Only wants and holdings from the chosen album count."""
        store.want("alice", "bra-1")
        store.want("alice", "club-1")
        store.own("bob", "club-1")
        store.own("carol", "bra-1")

        result = await find_matches(store, "alice", MatchFilters(album_id="club-2025"))

        assert [m.user.id for m in result.matches] == ["bob"]
        assert result.wanted_count == 1

    async def test_can_offer_is_distinct_and_in_album_order(self, store) -> None:
        store.want("alice", "arg-1")
        store.want("alice", "bra-3")
        store.want("alice", "bra-1")
        store.own("bob", "arg-1", quantity=3)
        store.own("bob", "bra-3")
        store.own("bob", "bra-1")

        result = await find_matches(store, "alice")

        assert [s.id for s in result.matches[0].can_offer] == ["bra-1", "bra-3", "arg-1"]


class TestFindHolders:
    async def test_lists_holders_with_rating(self, store) -> None:
        store.own("bob", "bra-1", quantity=1)
        store.own("carol", "bra-1", quantity=3)
        store.ratings["carol"].extend([4, 5])

        result = await find_holders_of_sticker(store, "bra-1")

        assert result.sticker.id == "bra-1"
        assert [(h.user.id, h.quantity) for h in result.holders] == [("carol", 3), ("bob", 1)]
        assert result.holders[0].rating == 4.5
        assert result.holders[1].rating == 0.0

    async def test_independent_of_wants_and_excludes_caller(self, store) -> None:
        store.own("alice", "bra-1")
        store.own("bob", "bra-1")

        result = await find_holders_of_sticker(store, "bra-1", exclude_user_id="alice")

        assert [h.user.id for h in result.holders] == ["bob"]

    async def test_location_filter(self, store) -> None:
        store.own("bob", "bra-1")
        store.own("carol", "bra-1")

        result = await find_holders_of_sticker(store, "bra-1", MatchFilters(state="RJ"))

        assert [h.user.id for h in result.holders] == ["carol"]

    async def test_unknown_sticker(self, store) -> None:
        with pytest.raises(NotFoundError):
            await find_holders_of_sticker(store, "nope")


class TestFindCompatible:
    async def test_both_directions(self, store) -> None:
        store.own("alice", "bra-2", quantity=2)
        store.want("alice", "bra-1")
        store.own("bob", "bra-1")
        store.own("bob", "bra-5", for_trade=False)
        store.want("bob", "bra-2")
        store.want("alice", "bra-5")

        result = await find_compatible_with(store, "alice", "bob")

        assert [(c.sticker.id, c.quantity) for c in result.i_can_offer] == [("bra-2", 2)]
        assert [c.sticker.id for c in result.they_can_offer] == ["bra-1"]

    async def test_nothing_in_common(self, store) -> None:
        result = await find_compatible_with(store, "alice", "bob")

        assert result.i_can_offer == []
        assert result.they_can_offer == []

    async def test_same_user(self, store) -> None:
        with pytest.raises(KnownError):
            await find_compatible_with(store, "alice", "alice")

    async def test_unknown_user(self, store) -> None:
        with pytest.raises(NotFoundError):
            await find_compatible_with(store, "alice", "ghost")
