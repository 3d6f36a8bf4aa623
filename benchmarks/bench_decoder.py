"""
Decoder-only benchmark.

Usage:
    python -m benchmarks.bench_decoder catalog.yaml [--count N] [--repeat R]

Times the two decoder modes in isolation (no Qt, no surfaces, no rules):
  - decode_to_pixels  (what the pixel-buffer strategy pays before its blit)
  - decode_to_uri     (the whole measured window of the URI strategy)

Useful to tell how much of a pixel vs. URI verdict is decode cost and how
much is surface allocation + blit.
"""
import argparse
import sys
import time
from statistics import mean, median, stdev

from core.catalog import catalog_prefix, load_catalog
from core.decoder import PillowPlaceholderDecoder
from core.errors import CatalogError, DecodeError


def time_mode(fn, placeholders, repeat):
    times = []
    failures = 0
    for _ in range(repeat):
        for ph in placeholders:
            t0 = time.perf_counter()
            try:
                fn(ph)
            except DecodeError:
                failures += 1
                continue
            times.append((time.perf_counter() - t0) * 1000)
    return times, failures


def _line(label, times, failures):
    if not times:
        return f"  {label:18s}: no successful decodes ({failures} failures)"
    spread = stdev(times) if len(times) > 1 else 0.0
    return (f"  {label:18s}: n={len(times):5d}  total={sum(times):8.2f}ms  "
            f"mean={mean(times):.4f}ms  median={median(times):.4f}ms  "
            f"stdev={spread:.4f}ms  max={max(times):.4f}ms  failures={failures}")


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("catalog")
    ap.add_argument("--count", type=int, default=100,
                    help="Number of catalog entries to decode (default: 100)")
    ap.add_argument("--repeat", type=int, default=5,
                    help="Passes over the sample set (default: 5)")
    ap.add_argument("--max-side", type=int, default=100)
    args = ap.parse_args()

    try:
        samples = catalog_prefix(load_catalog(args.catalog), args.count)
    except CatalogError as e:
        print(e)
        sys.exit(1)
    if not samples:
        print(f"No samples in {args.catalog}")
        sys.exit(1)

    decoder = PillowPlaceholderDecoder(max_side=args.max_side)
    placeholders = [s.placeholder for s in samples]
    # warmup so first-call import/plugin costs are not attributed to either mode
    for ph in placeholders[:5]:
        try:
            decoder.decode_to_pixels(ph)
            decoder.decode_to_uri(ph)
        except DecodeError:
            pass

    print(f"Decoding {len(placeholders)} placeholders x {args.repeat} passes\n")
    print(_line("decode_to_pixels", *time_mode(decoder.decode_to_pixels, placeholders, args.repeat)))
    print(_line("decode_to_uri", *time_mode(decoder.decode_to_uri, placeholders, args.repeat)))


if __name__ == "__main__":
    main()
