#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from igs_trails.io.read import fetch_bytes
from igs_trails.pipeline.load import EXAMPLE_DATASETS

OUTPUT_DIR = Path(__file__).resolve().parents[2] / "data"


def example_files(example_id: str) -> list[str]:
    dataset = EXAMPLE_DATASETS[example_id]
    return [dataset.floorplan, dataset.conversation, *dataset.files]


def download_example(base_url: str, example_id: str, out_dir: Path, timeout: float) -> int:
    target = out_dir / example_id
    target.mkdir(parents=True, exist_ok=True)
    written = 0
    for file_name in example_files(example_id):
        payload = fetch_bytes(f"{base_url.rstrip('/')}/{example_id}/{file_name}", timeout=timeout)
        (target / file_name).write_bytes(payload)
        written += 1
    return written


def main() -> None:
    parser = argparse.ArgumentParser(description="Mirror IGS example datasets into a local directory.")
    parser.add_argument("base_url", help="Base URL that hosts <example-id>/<file> paths.")
    parser.add_argument("--example", action="append", choices=sorted(EXAMPLE_DATASETS))
    parser.add_argument("--out", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--timeout", type=float, default=30.0)
    args = parser.parse_args()

    for example_id in args.example or sorted(EXAMPLE_DATASETS):
        written = download_example(args.base_url, example_id, args.out, args.timeout)
        print(f"{example_id}: files_written={written} output_dir={args.out / example_id}")


if __name__ == "__main__":
    main()
