#!/usr/bin/env python3
"""Script to issue a new signed licence and a matching product key."""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from licence.manager import LicenceContext, LicenceManager
from licence.templates.defaults import TEMPLATES


def main():
    parser = argparse.ArgumentParser(description="Issue a software licence")
    parser.add_argument("owner", help="Licensee name")
    parser.add_argument(
        "--tier",
        choices=list(TEMPLATES),
        default="standard",
        help="Licence template",
    )
    parser.add_argument("--output", help="Write the licence document to this file")

    args = parser.parse_args()

    manager = LicenceManager(LicenceContext.from_settings())
    document = manager.issue_from_template(args.tier, args.owner)
    product_key = manager.generate_template_key(args.tier, args.owner)
    licence = manager.load(document)

    if args.output:
        Path(args.output).write_text(document)

    print(f"Licence issued successfully!")
    print(f"  To:          {licence.owner}")
    print(f"  Tier:        {args.tier}")
    print(f"  Expires:     {licence.expire_at.isoformat()}")
    print(f"  Features:    {', '.join(licence.features)}")
    print(f"  Product key: {product_key}")
    if not args.output:
        print()
        print(document, end="")


if __name__ == "__main__":
    main()
