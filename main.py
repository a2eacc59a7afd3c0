"""SkillGuide - technical skill guide generator

Simple CLI for generating one guide from the terminal.
"""

import argparse
import asyncio
from pathlib import Path

from skillguide.agents.orchestrator import GuideOrchestrator


async def run_generation(topic: str, max_per_type: int | None, output: str | None) -> int:
    """Run one guide generation, printing progress; returns a process exit code."""
    print(f"Topic: {topic}")
    print("-" * 50)

    orchestrator = GuideOrchestrator()
    titles: dict[str, str] = {}
    exit_code = 1

    async for event in orchestrator.generate(topic, max_per_type):
        event_type = event.event.value
        data = event.data

        if event_type == "phase":
            print(f"\n[~] {data.get('message', '')}")

        elif event_type == "discovery_complete":
            sources = data.get("sources", [])
            print(f"\n[*] Discovered {len(sources)} sources:")
            for source in sources:
                titles[source["id"]] = source["title"]
                print(f"  - [{source['type']}] {source['title']}")
                print(f"    {source['url']}")

        elif event_type == "source_update":
            step = data.get("step")
            if step:
                print(f"  [.] {titles.get(data['sourceId'], data['sourceId'])}: {step[:100]}")

        elif event_type == "source_complete":
            print(f"  [+] {titles.get(data['sourceId'], data['sourceId'])}: {data['wordCount']} words")

        elif event_type == "source_error":
            print(f"  [x] {titles.get(data['sourceId'], data['sourceId'])}: {data['error']}")

        elif event_type == "complete":
            stats = data.get("stats", {})
            print("\n[*] Guide complete!")
            print(f"   Sources: {stats.get('successCount')}/{stats.get('sourceCount')}")
            print(f"   Words: {stats.get('generatedWords')}")
            if output:
                Path(output).write_text(data.get("guide", "") + "\n", encoding="utf-8")
                print(f"   Written to: {output}")
            else:
                print(f"\n{'='*50}")
                print(data.get("guide", ""))
            exit_code = 0

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('message', 'Unknown error')}")

    return exit_code


def main():
    parser = argparse.ArgumentParser(description="SkillGuide technical guide generator")
    parser.add_argument("--topic", "-t", required=True, help="Topic to build a guide for")
    parser.add_argument(
        "--max-per-type",
        "-n",
        type=int,
        default=None,
        help="Sources per category, clamped to 1-3 (default: from config)",
    )
    parser.add_argument("--output", "-o", help="Write the final guide to this markdown file")

    args = parser.parse_args()

    raise SystemExit(asyncio.run(run_generation(args.topic, args.max_per_type, args.output)))


if __name__ == "__main__":
    main()
