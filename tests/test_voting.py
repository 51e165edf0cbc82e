"""
Tests for attendee votes and the 5/3/1 point tally.
"""

import pytest

from chili_cookoff.errors import ValidationError


@pytest.mark.parametrize(
    "placements",
    [
        (None, 2, 3),
        (1, None, 3),
        (1, 2, ""),
        (1, 1, 3),
        (1, 2, 1),
        (1, 2, 2),
        ("1", 1, 2),
    ],
)
async def test_invalid_votes_rejected(voting, db_manager, placements):
    with pytest.raises(ValidationError):
        await voting.submit_vote(*placements)

    assert (await db_manager.count_rows("votes"))["votes"] == 0


async def test_vote_for_unknown_chili_is_accepted(voting, db_manager):
    vote_id = await voting.submit_vote(101, 102, 103, "10.0.0.1", "pytest")

    assert vote_id == 1
    rows = await db_manager.fetch_all("SELECT * FROM votes")
    assert rows[0]["ip_address"] == "10.0.0.1"
    assert rows[0]["user_agent"] == "pytest"


async def test_points_follow_schedule(voting, add_chilis):
    await add_chilis(1, 2, 3, 4)
    await voting.submit_vote(1, 2, 3)
    await voting.submit_vote(1, 3, 2)
    await voting.submit_vote(2, 1, 4)
    await voting.submit_vote(4, 3, 1)

    report = await voting.get_results()

    by_number = {row["number"]: row for row in report["results"]}
    assert by_number[1]["total_points"] == 5 + 5 + 3 + 1
    assert by_number[2]["total_points"] == 3 + 1 + 5
    assert by_number[3]["total_points"] == 1 + 3 + 3
    assert by_number[4]["total_points"] == 1 + 5
    assert by_number[1]["first_place_votes"] == 2
    assert by_number[1]["second_place_votes"] == 1
    assert by_number[1]["third_place_votes"] == 1
    assert by_number[1]["total_votes_received"] == 4
    assert [row["number"] for row in report["results"]] == [1, 2, 3, 4]
    assert report["totalVotes"] == 4
    assert report["votingSystem"] == {"firstPlace": 5, "secondPlace": 3, "thirdPlace": 1}


async def test_tie_on_points_and_placements_ordered_by_number(voting, registry):
    await registry.upsert_chili(2, "Green Chili", "B")
    await registry.upsert_chili(1, "Red Inferno", "A")
    await voting.submit_vote(1, 2, 3)
    await voting.submit_vote(2, 1, 3)

    report = await voting.get_results()

    first, second = report["results"]
    assert first["total_points"] == second["total_points"] == 8
    assert [first["number"], second["number"]] == [1, 2]


async def test_first_place_votes_break_point_ties(voting, add_chilis):
    await add_chilis(1, 2, 3, 4, 5)
    # chili 1: one first (5); chili 2: one second + two thirds (3 + 1 + 1)
    await voting.submit_vote(1, 2, 3)
    await voting.submit_vote(4, 5, 2)
    await voting.submit_vote(5, 4, 2)

    results = (await voting.get_results())["results"]
    order = [row["number"] for row in results]

    assert order.index(1) < order.index(2)


async def test_chili_without_votes_has_zero_points(voting, add_chilis):
    await add_chilis(1)

    report = await voting.get_results()

    assert report["results"][0]["total_points"] == 0
    assert report["results"][0]["total_votes_received"] == 0
    assert report["totalVotes"] == 0
