import argparse
import json
import logging
import os
import sys

from PySide6.QtGui import QGuiApplication

from config.config_manager import ConfigManager
from core.catalog import catalog_prefix, load_catalog
from core.decoder import PillowPlaceholderDecoder
from core.errors import CatalogError, InsufficientDataError
from core.models import RunResult, Verdict
from core.orchestrator import SETTLE_MODES, RunOrchestrator
from render.image_loader import QtImageLoader
from render.pixel_strategy import PixelBufferStrategy
from render.style_sheet import RuleCache, StyleSheet
from render.uri_strategy import UriRuleStrategy

LOG_DIR = os.path.expanduser("~/.placeholder_bench")


def setup_logging(log_level):
    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)
    os.makedirs(LOG_DIR, exist_ok=True)
    log_path = os.path.join(LOG_DIR, "placeholder_bench.log")
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path, mode="a"),
            # why: stdout carries the report (possibly JSON)
            logging.StreamHandler(sys.stderr)
        ]
    )


def _fmt_ms(value) -> str:
    return "n/a" if value is None else f"{value:.2f}ms"


def format_result(result: RunResult) -> str:
    if result.is_empty:
        return f"{result.method}: no data (no valid samples)"
    return (f"{result.method}: total={_fmt_ms(result.total_time)}  "
            f"avg={_fmt_ms(result.avg_time)}  min={_fmt_ms(result.min_time)}  "
            f"max={_fmt_ms(result.max_time)}  samples={result.sample_count}")


def format_verdict(verdict: Verdict) -> str:
    if verdict.is_tie:
        return f"Tie: both runs took {verdict.a.total_time:.2f}ms in total"
    return (f"Winner: {verdict.winner} is {verdict.difference:.2f}ms "
            f"({verdict.percent_difference:.1f}%) faster than {verdict.loser} "
            f"(speedup {verdict.speedup_ratio:.2f}x)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare pixel-buffer and URI-rule placeholder rendering.")
    parser.add_argument('--config', default=None, help='Path to config.yaml.')
    parser.add_argument('--catalog', default=None, help='Sample catalog (YAML). Overrides catalog.path.')
    parser.add_argument('--count', type=int, default=None,
                        help='Number of catalog images per run (default: bench.image_count).')
    parser.add_argument('--strategy', choices=('pixel', 'uri', 'both'), default='both')
    parser.add_argument('--settle-ms', type=int, default=None,
                        help='Settle window in milliseconds (default: bench.settle_window_ms).')
    parser.add_argument('--settle-mode', choices=SETTLE_MODES, default=None)
    parser.add_argument('--json', action='store_true', default=False,
                        help='Print results as JSON instead of text.')
    parser.add_argument('--log-level', default=None)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config_manager = ConfigManager(args.config)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1
    setup_logging(args.log_level or config_manager.logging_level)

    if args.settle_ms is not None:
        config_manager.config["bench"]["settle_window_ms"] = args.settle_ms
    if args.settle_mode is not None:
        config_manager.config["bench"]["settle_mode"] = args.settle_mode

    catalog_path = args.catalog or config_manager.get("catalog.path")
    try:
        catalog = load_catalog(catalog_path)
    except CatalogError as e:
        logging.error("%s", e)
        return 1

    count = args.count if args.count is not None else int(config_manager.get("bench.image_count", 100))
    try:
        samples = catalog_prefix(catalog, count)
    except ValueError as e:
        logging.error("%s", e)
        return 2

    # why: nothing is shown on screen; QImage/QPainter only need a platform plugin
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QGuiApplication.instance() or QGuiApplication(sys.argv[:1])
    app.setApplicationName("Placeholder Bench")

    decoder = PillowPlaceholderDecoder(max_side=int(config_manager.get("decoder.max_side", 100)))
    rule_cache = RuleCache(StyleSheet())
    strategies = {
        "pixel": PixelBufferStrategy(decoder),
        "uri": UriRuleStrategy(decoder, rule_cache),
    }
    selected = ["pixel", "uri"] if args.strategy == "both" else [args.strategy]

    try:
        orchestrator = RunOrchestrator.from_config(config_manager, QtImageLoader())
    except ValueError as e:
        logging.error("Invalid benchmark configuration: %s", e)
        return 1

    logging.info("Benchmarking %s over %d images", ", ".join(selected), len(samples))
    results = []
    for name in selected:
        try:
            results.append(orchestrator.run_and_wait(strategies[name], samples))
        except ValueError as e:
            logging.error("%s", e)
            return 2

    verdict = None
    verdict_error = None
    if len(selected) == 2:
        try:
            verdict = orchestrator.verdict("pixel", "uri")
        except InsufficientDataError as e:
            verdict_error = str(e)

    if args.json:
        print(json.dumps({
            "results": [r.to_dict() for r in results],
            "verdict": verdict.to_dict() if verdict else None,
            "verdict_error": verdict_error,
            "rules_registered": len(rule_cache),
        }, indent=2))
    else:
        for result in results:
            print(format_result(result))
        if verdict is not None:
            print(format_verdict(verdict))
        elif verdict_error:
            print(f"No verdict: {verdict_error}")

    logging.info("Benchmark complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
