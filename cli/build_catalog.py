#!/usr/bin/env python3
"""Build a sample catalog from a directory of images.

Usage:
    python -m cli.build_catalog <image_directory> -o catalog.yaml [--max-side N]

Every readable image becomes one catalog entry: a placeholder encoded for
the default (Pillow) decoder, plus a relative URL back to the original so
the benchmark can load the full-resolution image.
"""

import argparse
import logging
import os
import sys

from core.catalog import build_catalog


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Build a placeholder catalog from a directory.")
    ap.add_argument("directory")
    ap.add_argument("-o", "--output", default="catalog.yaml")
    ap.add_argument("--max-side", type=int, default=32,
                    help="Longest placeholder side in pixels (default: 32)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not os.path.isdir(args.directory):
        print(f"Not a directory: {args.directory}", file=sys.stderr)
        return 1
    if args.max_side <= 0:
        print("--max-side must be positive", file=sys.stderr)
        return 2

    images = build_catalog(args.directory, args.output, args.max_side)
    if not images:
        print(f"No images found in {args.directory}", file=sys.stderr)
        return 1
    print(f"Wrote {len(images)} entries to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
