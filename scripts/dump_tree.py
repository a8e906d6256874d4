"""Print the branch tree served by a running BFF."""

from __future__ import annotations

import argparse
import asyncio
import json

from branchdocs.api_client import BranchApi
from branchdocs.config import BRANCHDOCS_API_URL
from branchdocs.exceptions import ApiRequestError
from branchdocs.levels import LEVELS
from branchdocs.sync import BranchSync
from branchdocs.tree import build_tree, render_text


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch every branch level through the BFF and print the tree.")
    parser.add_argument("--api-url", default=BRANCHDOCS_API_URL, help="BFF base URL including its /api prefix")
    parser.add_argument("--expand", action="store_true", help="Expand every branch before printing")
    parser.add_argument("--counts", action="store_true", help="Print per-level record counts as JSON instead")
    args = parser.parse_args()

    try:
        output = asyncio.run(dump(args.api_url, expand=args.expand, counts=args.counts))
    except ApiRequestError as exc:
        parser.exit(1, f"{exc.code.value}: {exc.message}\n")
    print(output)


async def dump(api_url: str, *, expand: bool, counts: bool) -> str:
    async with BranchApi(api_url) as api:
        sync = BranchSync(api)
        tree = await sync.load_tree()

    if counts:
        return json.dumps({f"branches{level}": len(tree[level]) for level in LEVELS}, indent=2)

    if expand:
        for level in LEVELS:
            for record in sync.store.get(level):
                sync.store.toggle_expanded(level, record.id)
    return render_text(build_tree(sync.store)) or "(no branches)"


if __name__ == "__main__":
    main()
