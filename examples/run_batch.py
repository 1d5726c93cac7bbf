"""Example: parse an action script and execute it against the simulated providers.

Run from the repository root:
    python examples/run_batch.py examples/scripts/planet_intro.json
"""

import asyncio
import sys
from pathlib import Path

from tetraspore import ActionParser, ActionProcessor
from tetraspore.app.config import ApiKeys, TetrasporeConfig


async def run(script: Path):
    parsed = ActionParser().parse_file(script)
    if not parsed.success:
        for error in parsed.errors:
            print(f"✗ {error}")
        return

    print("Execution order:")
    for node in parsed.graph:
        deps = ", ".join(sorted(node.dependencies)) or "-"
        print(f"  {node.id:<20} {node.type:<18} after: {deps}")

    config = TetrasporeConfig()
    config.execution.simulated_latency = 0.1

    # Placeholder keys; the simulated providers never call out
    processor = ActionProcessor(
        config=config,
        api_keys=ApiKeys(flux="demo", replicate="demo", openai="demo", google_cloud="demo"),
    )
    result = await processor.execute(parsed.graph)

    print()
    for asset in result.assets_generated:
        print(f"✨ {asset.kind:<8} {asset.action_id:<16} {asset.result.url}")
    for marker in result.game_actions:
        print(f"→ {marker.kind}: {marker.action_id}")
    for error in result.errors:
        print(f"✗ {error.action_id}: {error.message}")
    print(f"\nTotal cost: ${result.total_cost:.4f}")


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent / "scripts" / "planet_intro.json"
    asyncio.run(run(path))
