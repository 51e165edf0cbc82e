#!/usr/bin/env python3
"""
Demo client to populate a running cook-off server with sample data.
Registers chilis, then submits judge scores, attendee votes and bonus points.
"""

import asyncio
import random

import aiohttp

CHILI_NAMES = [
    "Red Inferno",
    "Green Chili",
    "Smoky Brisket",
    "Three Bean Blaze",
    "White Chicken",
    "Ghost Pepper Gamble",
    "Cincinnati Style",
    "Texas Red",
    "Verde Pork",
    "Sweet Heat",
    "Black Bean Bonanza",
    "Habanero Honey",
]

COOKS = [
    "Alice",
    "Bob",
    "Charlie",
    "Diana",
    "Eve",
    "Frank",
    "Grace",
    "Henry",
    "Ivy",
    "Jack",
    "Kate",
    "Leo",
]

JUDGES = ["judge-1", "judge-2", "judge-3", "judge-4", "judge-5"]

CATEGORIES = ["aroma", "appearance", "taste", "heat_level", "creativity"]


async def post_json(session, url, payload):
    """POST a JSON payload; returns (status, body) or None on connection failure."""
    try:
        async with session.post(url, json=payload) as response:
            return response.status, await response.json()
    except aiohttp.ClientError as e:
        print(f"Error posting to {url}: {e}")
        return None


def random_bonus_allocation(numbers):
    """Split at most 10 points over a few random chilis."""
    remaining = random.randint(0, 10)
    allocation = []
    for number in random.sample(numbers, min(3, len(numbers))):
        if remaining <= 0:
            break
        points = random.randint(1, remaining)
        allocation.append({"chili_id": number, "bonus_points": points})
        remaining -= points
    return allocation


async def generate_demo_data(
    server_host="localhost",
    server_port=3005,
    num_chilis=8,
    num_votes=40,
):
    """Generate a full competition's worth of demo data."""
    base_url = f"http://{server_host}:{server_port}"
    numbers = list(range(1, num_chilis + 1))

    async with aiohttp.ClientSession() as session:
        print(f"Registering {num_chilis} chilis...")
        for number in numbers:
            await post_json(
                session,
                f"{base_url}/api/chilis",
                {
                    "number": number,
                    "name": CHILI_NAMES[(number - 1) % len(CHILI_NAMES)],
                    "cook": COOKS[(number - 1) % len(COOKS)],
                },
            )

        await post_json(session, f"{base_url}/api/competition/status", {"status": "voting"})

        print(f"Submitting scores from {len(JUDGES)} judges...")
        for judge_id in JUDGES:
            for number in numbers:
                score = {name: random.randint(3, 10) for name in CATEGORIES}
                score.update({"chili_id": number, "judge_id": judge_id})
                await post_json(session, f"{base_url}/api/scores", score)

        print(f"Submitting {num_votes} attendee votes...")
        total_votes = 0
        for i in range(num_votes):
            first, second, third = random.sample(numbers, 3)
            result = await post_json(
                session,
                f"{base_url}/api/votes",
                {
                    "first_place": first,
                    "second_place": second,
                    "third_place": third,
                    "user_agent": f"demo-client/{i}",
                },
            )
            if result and result[0] == 201:
                total_votes += 1

        print("Running the bonus round...")
        await post_json(session, f"{base_url}/api/competition/bonus/start", {})
        for judge_id in JUDGES:
            await post_json(
                session,
                f"{base_url}/api/bonus-scores",
                {"judge_id": judge_id, "bonus_scores": random_bonus_allocation(numbers)},
            )
        await post_json(session, f"{base_url}/api/competition/bonus/end", {})

    print("\nDemo data generation complete!")
    print(f"Created {num_chilis} chilis and {total_votes} votes")
    return total_votes


async def smoke_test(server_host="localhost", server_port=3005):
    """Register one chili, score it and vote once."""
    base_url = f"http://{server_host}:{server_port}"

    async with aiohttp.ClientSession() as session:
        for payload in (
            {"number": 901, "name": "Smoke Test A", "cook": "Tester"},
            {"number": 902, "name": "Smoke Test B", "cook": "Tester"},
            {"number": 903, "name": "Smoke Test C", "cook": "Tester"},
        ):
            result = await post_json(session, f"{base_url}/api/chilis", payload)
            if result is None:
                print("Smoke test failed: server unreachable")
                return False
            print(f"Chili: {result}")

        score = {name: 7 for name in CATEGORIES}
        score.update({"chili_id": 901, "judge_id": "smoke-judge"})
        print(f"Score: {await post_json(session, f'{base_url}/api/scores', score)}")

        vote = {"first_place": 901, "second_place": 902, "third_place": 903}
        print(f"Vote: {await post_json(session, f'{base_url}/api/votes', vote)}")

    print("Smoke test completed successfully!")
    return True


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        if sys.argv[1] == "--generate":
            host = sys.argv[2] if len(sys.argv) > 2 else "localhost"
            port = int(sys.argv[3]) if len(sys.argv) > 3 else 3005
            print("Starting demo data generation...")
            asyncio.run(generate_demo_data(host, port))
        elif sys.argv[1] in ["--help", "-h"]:
            print("Chili Cook-Off Demo Client")
            print("=" * 30)
            print("")
            print("Usage:")
            print("  python demo_client.py                      # Smoke test: one chili, score, vote")
            print("  python demo_client.py --generate           # Populate a full demo competition")
            print("  python demo_client.py --generate HOST      # Populate a specific host")
            print("  python demo_client.py --generate HOST PORT # Populate host:port")
        else:
            print(f"Unknown option: {sys.argv[1]}")
            print("Use --help for usage information")
    else:
        asyncio.run(smoke_test())
