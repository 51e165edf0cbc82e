"""
Tests for the chili registry: upsert, listing and cascading deletes.
"""

import aiosqlite
import pytest

from chili_cookoff.errors import NotFoundError, ValidationError


async def test_upsert_twice_updates_in_place(registry):
    await registry.upsert_chili(1, "Red Inferno", "A")
    result = await registry.upsert_chili(1, "Red Inferno II", "B")

    assert result["changes"] == 1
    chilis = await registry.list_chilis()
    assert chilis == [{"number": 1, "name": "Red Inferno II", "cook": "B"}]


async def test_list_is_ordered_by_number(registry):
    for number in (3, 1, 2):
        await registry.upsert_chili(number, f"Chili {number}", "cook")

    assert [c["number"] for c in await registry.list_chilis()] == [1, 2, 3]


async def test_missing_name_and_cook_stored_empty(registry):
    result = await registry.upsert_chili("7")

    assert result["data"] == {"number": 7, "name": "", "cook": ""}
    assert await registry.list_chilis() == [{"number": 7, "name": "", "cook": ""}]


@pytest.mark.parametrize("number", [None, "", "abc", True, 1.5, 2**63, -(2**63) - 1])
async def test_upsert_rejects_bad_number(registry, number):
    with pytest.raises(ValidationError):
        await registry.upsert_chili(number, "name", "cook")


async def test_delete_chili_removes_related_rows_only(
    registry, judging, voting, bonus, db_manager, add_chilis
):
    await add_chilis(1, 2, 3, 4)
    await judging.submit_score(1, {"taste": 8}, "j1")
    await judging.submit_score(2, {"taste": 6}, "j1")
    await bonus.submit_bonus_scores(
        [{"chili_id": 1, "bonus_points": 4}, {"chili_id": 2, "bonus_points": 3}], "j1"
    )
    await voting.submit_vote(1, 2, 3)
    await voting.submit_vote(2, 3, 1)
    await voting.submit_vote(3, 1, 4)
    await voting.submit_vote(2, 3, 4)

    deleted = await registry.delete_chili(1)

    assert deleted == {"bonus_scores": 1, "scores": 1, "votes": 3, "chilis": 1}
    counts = await db_manager.count_rows("chilis", "scores", "votes", "bonus_scores")
    assert counts == {"chilis": 3, "scores": 1, "votes": 1, "bonus_scores": 1}
    assert [c["number"] for c in await registry.list_chilis()] == [2, 3, 4]


async def test_delete_unknown_chili_raises_not_found(registry):
    with pytest.raises(NotFoundError):
        await registry.delete_chili(99)


async def test_delete_all_resets_competition(
    registry, judging, voting, bonus, competition, db_manager, add_chilis
):
    await add_chilis(1, 2, 3)
    await judging.submit_score(1, {"aroma": 5}, "j1")
    await voting.submit_vote(1, 2, 3)
    await bonus.submit_bonus_scores([{"chili_id": 2, "bonus_points": 5}], "j1")
    await competition.set_status("closed")
    await bonus.start()

    deleted = await registry.delete_all()

    assert deleted == {"bonus_scores": 1, "scores": 1, "votes": 1, "chilis": 3}
    counts = await db_manager.count_rows("chilis", "scores", "votes", "bonus_scores")
    assert set(counts.values()) == {0}
    assert await competition.get_status() == "setup"
    assert await bonus.is_active() is False


async def test_failed_reset_rolls_back(registry, judging, bonus, db_manager, add_chilis):
    await add_chilis(1, 2)
    await judging.submit_score(1, {"taste": 7}, "j1")
    await bonus.submit_bonus_scores([{"chili_id": 2, "bonus_points": 3}], "j1")
    async with db_manager.connect() as db:
        await db.execute("DROP TABLE votes")

    with pytest.raises(aiosqlite.OperationalError):
        await registry.delete_all()

    counts = await db_manager.count_rows("chilis", "scores", "bonus_scores")
    assert counts == {"chilis": 2, "scores": 1, "bonus_scores": 1}


async def test_failed_chili_delete_rolls_back(registry, judging, bonus, db_manager, add_chilis):
    await add_chilis(1, 2)
    await judging.submit_score(1, {"taste": 7}, "j1")
    await bonus.submit_bonus_scores([{"chili_id": 1, "bonus_points": 3}], "j1")
    async with db_manager.connect() as db:
        await db.execute("DROP TABLE votes")

    with pytest.raises(aiosqlite.OperationalError):
        await registry.delete_chili(1)

    counts = await db_manager.count_rows("chilis", "scores", "bonus_scores")
    assert counts == {"chilis": 2, "scores": 1, "bonus_scores": 1}


async def test_largest_storable_number_accepted(registry):
    result = await registry.upsert_chili(2**63 - 1)

    assert result["data"]["number"] == 2**63 - 1
