"""Generate a synthetic election bundle and optionally compute its results.

Candidates get fake names from faker with a fixed seed, so the same
arguments always produce the same bundle.

Usage:
    python scripts/simulate_election.py
    python scripts/simulate_election.py --positions 4 --candidates 12 --voters 40 -o bundle.json
    python scripts/simulate_election.py --report --verbose
"""

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from faker import Faker

sys.path.insert(0, str(Path(__file__).parent.parent))

from election.compute import decode_records, generate_election_report  # noqa: E402

SEED = 20240301

POSITION_NAMES = ["President", "Vice President", "Secretary", "Treasurer", "Board Member", "Auditor"]


def generate_bundle(
    n_positions: int, n_candidates: int, n_voters: int, seed: int = SEED
) -> dict:
    """Build an election bundle: election record, registrations and ballots.

    About half of the candidates register a second choice. Each voter
    selects up to ``seats + 1`` candidates in every position.
    """
    rng = random.Random(seed)
    fake = Faker()
    Faker.seed(seed)

    positions = {}
    for i in range(n_positions):
        name = POSITION_NAMES[i % len(POSITION_NAMES)]
        if i >= len(POSITION_NAMES):
            name = f"{name} {i // len(POSITION_NAMES) + 1}"
        positions[f"pos{i + 1}"] = {"name": name, "maxWinners": rng.choice([1, 1, 2, 3])}
    position_ids = list(positions)

    registrations = []
    for i in range(n_candidates):
        first = rng.choice(position_ids)
        record = {
            "userId": f"user{i + 1}",
            "userDisplayName": fake.name(),
            "firstChoicePosition": first,
        }
        others = [p for p in position_ids if p != first]
        if others and rng.random() < 0.5:
            record["secondChoicePosition"] = rng.choice(others)
        registrations.append(record)

    ballots = []
    for position_id, position in positions.items():
        running = [
            r["userId"] for r in registrations
            if position_id in (r["firstChoicePosition"], r.get("secondChoicePosition"))
        ]
        votes = {}
        for v in range(n_voters):
            if not running or rng.random() < 0.2:
                continue
            k = rng.randint(1, min(len(running), position["maxWinners"] + 1))
            votes[f"voter{v + 1}"] = rng.sample(running, k)
        ballots.append({"positionId": position_id, "votes": votes})

    return {
        "election": {
            "id": f"sim-{seed}",
            "name": f"Simulated Election {seed}",
            "status": "closed",
            "schedule": {},
            "positions": positions,
        },
        "registrations": registrations,
        "ballots": ballots,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Generate a synthetic election bundle")
    parser.add_argument("--positions", type=int, default=3, help="Number of positions (default: 3)")
    parser.add_argument("--candidates", type=int, default=8, help="Number of candidates (default: 8)")
    parser.add_argument("--voters", type=int, default=25, help="Number of voters (default: 25)")
    parser.add_argument("--seed", type=int, default=SEED, help=f"Random seed (default: {SEED})")
    parser.add_argument("-o", "--output", help="Write the bundle to this path instead of stdout")
    parser.add_argument("--report", action="store_true", help="Print the computed report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    bundle = generate_bundle(args.positions, args.candidates, args.voters, args.seed)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(bundle, indent=2), encoding="utf-8")
        print(f"Written to {output_path}")
    elif not args.report:
        print(json.dumps(bundle, indent=2))

    if args.report:
        election, registrations, ballots = decode_records(
            bundle["election"], bundle["registrations"], bundle["ballots"]
        )
        report = generate_election_report(election, registrations, ballots)
        print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
