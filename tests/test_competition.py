"""
Tests for competition status transitions and admin statistics.
"""

import pytest

from chili_cookoff.errors import ValidationError


async def test_status_defaults_to_setup(competition):
    assert await competition.get_status() == "setup"


@pytest.mark.parametrize("status", ["voting", "closed", "setup"])
async def test_valid_transitions(competition, status):
    assert await competition.set_status(status) == status
    assert await competition.get_status() == status


@pytest.mark.parametrize("status", ["open", "", None, "VOTING", 1])
async def test_invalid_status_leaves_state_unchanged(competition, status):
    await competition.set_status("voting")

    with pytest.raises(ValidationError):
        await competition.set_status(status)

    assert await competition.get_status() == "voting"


async def test_status_change_keeps_bonus_flag(competition, bonus):
    await bonus.start()

    await competition.set_status("closed")

    assert await bonus.is_active() is True


async def test_stats(competition, judging, voting, add_chilis):
    await add_chilis(1, 2, 3)
    await judging.submit_score(1, {"taste": 5})
    await voting.submit_vote(1, 2, 3)
    await voting.submit_vote(3, 2, 1)

    stats = await competition.get_stats()

    assert stats == {
        "totalChilis": 3,
        "totalVotes": 2,
        "totalScores": 1,
        "totalBonusScores": 0,
        "competitionStatus": "setup",
        "bonusRoundActive": False,
    }
