#!/usr/bin/env python3
"""
Generate Sample Test Data

Creates realistic submission-created events for manual testing against
the local API server or a deployed function.
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.utils.event_generator import MockSubmissionGenerator


def generate_sample_events(seed: int = 42) -> dict[str, dict]:
    """Generate one event per interesting delivery scenario."""
    generator = MockSubmissionGenerator(seed=seed)

    events = {}

    # 1. Plain lead, no photos
    events["1_no_photos"] = generator.generate_webhook_event(file_count=0)

    # 2. Lead with a handful of photos
    events["2_with_photos"] = generator.generate_webhook_event(file_count=3)

    # 3. More photos than the attachment cap
    events["3_photo_overflow"] = generator.generate_webhook_event(file_count=14)

    # 4. No sales consultant, no spam fields
    events["4_minimal"] = generator.generate_webhook_event(
        include_consultant=False,
        include_spam=False,
        blank_fields=0,
    )

    # 5. Malformed body
    events["5_malformed_body"] = {"httpMethod": "POST", "body": "{not json", "isBase64Encoded": False}

    return events


def main():
    """Generate all sample test data."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=project_root / "scripts" / "test_data",
    )
    parser.add_argument(
        "--body-only",
        action="store_true",
        help="Print a single webhook body to stdout instead of writing files",
    )
    args = parser.parse_args()

    if args.body_only:
        event = MockSubmissionGenerator(seed=args.seed).generate_webhook_event(file_count=2)
        print(json.dumps(json.loads(event["body"]), indent=2))
        return

    args.output_dir.mkdir(parents=True, exist_ok=True)

    print("Generating sample submission events...\n")
    events = generate_sample_events(seed=args.seed)
    for name, event in events.items():
        path = args.output_dir / f"{name}.json"
        with open(path, "w") as f:
            json.dump(event, f, indent=2)
        print(f"   Saved {path}")

    print()
    print(f"Events: {len(events)}")
    print(f"All files saved to: {args.output_dir}")
    print()
    print("Next steps:")
    print("   1. Run scripts/local_api_server.py")
    print("   2. POST an event body to /.netlify/functions/submission-created")
    print()


if __name__ == "__main__":
    main()
