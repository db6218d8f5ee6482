#!/usr/bin/env python3
"""
Generate synthetic Telegram transcripts for benchmarking.
Messages are built from a fixed vocabulary with a deterministic seed so that
repeated runs produce byte-identical files.
"""

import argparse
import json
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence

VOCABULARY = [
    "hello", "world", "the", "quick", "brown", "fox", "jumps", "over", "lazy",
    "dog", "café", "naïve", "meeting", "tomorrow", "lunch", "deploy", "release",
    "bug", "fixed", "thanks", "привет", "мир", "こんにちは", "ok", "yes", "no",
]
DECORATIONS = ["😀", "👍", "🇫🇷", "👨‍👩‍👧", "🔥", ""]
SEPARATORS = [" ", ", ", ". ", "! ", "? ", "\n", " - "]
META_ENTITIES = [
    ("mention", "@someone"),
    ("phone", "+1 555 0100"),
    ("email", "user@example.com"),
    ("bot_command", "/start"),
]
STYLED_ENTITY_TYPES = ["plain", "plain", "plain", "bold", "italic", "code", "link", "hashtag"]

# Target sizes (number of messages)
TARGETS = [
    ("chat_small.json", 1_000),
    ("chat_medium.json", 50_000),
    ("chat_large.json", 250_000),
]


def _random_text(rng: random.Random, max_words: int = 12) -> str:
    parts = []
    for _ in range(rng.randint(1, max_words)):
        word = rng.choice(VOCABULARY)
        decoration = rng.choice(DECORATIONS)
        parts.append(word + decoration if rng.random() < 0.5 else decoration + word)
        parts.append(rng.choice(SEPARATORS))
    return "".join(parts)


def generate_chat(num_messages: int, num_authors: int = 8, seed: int = 0,
                  service_ratio: float = 0.02) -> dict:
    """
    Build a transcript document in the Telegram export layout

    Args:
        num_messages: Number of messages to generate
        num_authors: Number of distinct authors
        seed: Random seed
        service_ratio: Fraction of service messages

    Returns:
        Dictionary ready for json.dump
    """
    rng = random.Random(seed)
    authors = [f"Member {i}" for i in range(num_authors)]
    date = datetime(2023, 1, 1, 9, 0, 0)
    messages: List[dict] = []

    for message_id in range(1, num_messages + 1):
        date += timedelta(seconds=rng.randint(1, 600))
        if rng.random() < service_ratio:
            messages.append({
                "id": message_id,
                "type": "service",
                "date": date.isoformat(),
                "actor": rng.choice(authors),
                "action": "join_group_by_link",
                "text": "",
                "text_entities": [],
            })
            continue

        entities = []
        for _ in range(rng.randint(1, 3)):
            entities.append({"type": rng.choice(STYLED_ENTITY_TYPES), "text": _random_text(rng)})
        if rng.random() < 0.1:
            meta_type, meta_text = rng.choice(META_ENTITIES)
            entities.append({"type": meta_type, "text": meta_text})

        messages.append({
            "id": message_id,
            "type": "message",
            "date": date.isoformat(),
            "from": rng.choice(authors),
            "text": "".join(e["text"] for e in entities),
            "text_entities": entities,
        })

    return {
        "name": "Synthetic chat",
        "type": "private_supergroup",
        "id": 1000000000 + seed,
        "messages": messages,
    }


def generate_file(output_path: Path, num_messages: int, seed: int = 0) -> int:
    """Write a synthetic transcript and return its size in bytes"""
    print(f"Generating {output_path.name} ({num_messages} messages)...")
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(generate_chat(num_messages, seed=seed), f, ensure_ascii=False)
    actual_size = output_path.stat().st_size
    print(f"  ✓ Created: {output_path.name} ({actual_size / (1024*1024):.2f} MB)")
    return actual_size


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate all benchmark transcripts."""
    parser = argparse.ArgumentParser(description="Generate synthetic chat transcripts")
    parser.add_argument("--output-dir", default="benchmark_inputs",
                        help="Directory for the generated files")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args(argv)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    total_size = 0
    for filename, num_messages in TARGETS:
        output_path = output_dir / filename
        if output_path.exists():
            print(f"  ⏭️  Skipping {filename} (already exists)")
            total_size += output_path.stat().st_size
            continue
        total_size += generate_file(output_path, num_messages, seed=args.seed)

    print(f"✓ Generation complete, total size: {total_size / (1024*1024):.2f} MB in {output_dir}")
    return 0


if __name__ == "__main__":
    exit(main())
