"""Command-line entry point for itercluster."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Iterable, Iterator, Sequence

import pandas as pd

from itercluster.cli.schema_validation import SchemaValidationError, SchemaValidator
from itercluster.core import ClusteringError, InvalidItemError, Iteration
from itercluster.core.iterations import CLUSTER_FRAME_COLUMNS, FRAME_COLUMNS
from itercluster.data import (
    POINT_ID_COLUMN,
    X_COLUMN,
    Y_COLUMN,
    MissingColumnsError,
    items_from_frame,
    load_points,
)
from itercluster.dbscan import DBScanAlgorithm, DBScanParameters
from itercluster.diagnostics import (
    DIAGNOSTICS_VERSION,
    RunSummary,
    generate_qa_signals,
    summarize_run,
    write_json,
    write_parquet,
)
from itercluster.explain import trace_iteration
from itercluster.fixtures import available_fixtures


logger = logging.getLogger(__name__)


class IterclusterCliError(RuntimeError):
    """Raised when CLI arguments cannot be satisfied."""


_SCHEMA_VALIDATOR = SchemaValidator()
_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def _get_package_version() -> str:
    try:
        return metadata.version("itercluster")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itercluster",
        description="Step-by-step DB-Scan clustering of 2D points",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    version = _get_package_version()
    parser.add_argument(
        "--version",
        action="store_true",
        help=f"Show the installed itercluster version ({version})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    run = subparsers.add_parser(
        "run",
        help="Cluster a points dataset and write the final assignments",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    run.add_argument(
        "--points",
        required=True,
        help="Path to the points dataset (CSV or JSON)",
    )
    run.add_argument(
        "--output",
        required=True,
        help="Destination for item assignments (CSV or JSON lines)",
    )
    run.add_argument(
        "--clusters",
        help="Optional destination for the cluster table (CSV or JSON lines)",
    )
    run.add_argument(
        "--eps",
        type=float,
        default=1.0,
        help="Neighbourhood radius (distance threshold)",
    )
    run.add_argument(
        "--min-points",
        type=int,
        default=3,
        help="Minimum number of points, including the core point, to seed or grow a cluster",
    )
    run.add_argument(
        "--neighbor-index",
        choices=["brute", "grid"],
        default="brute",
        help="Neighbour search strategy",
    )
    run.add_argument(
        "--frontier-batch-size",
        type=int,
        help="Scan at most this many frontier points per iteration",
    )
    run.add_argument(
        "--reclaim-noise",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Move noise points into a cluster when they turn out to be border points",
    )
    run.add_argument(
        "--fold-completion",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Start the next cluster search in the same iteration that completes a cluster",
    )
    run.add_argument(
        "--seed",
        type=int,
        help="Seed for the random choice of cluster seeds",
    )
    run.add_argument(
        "--cluster-prefix",
        default="cluster",
        help="Prefix for generated cluster identifiers",
    )
    run.add_argument(
        "--id-column",
        default=POINT_ID_COLUMN,
        help="Column containing unique point identifiers",
    )
    run.add_argument(
        "--x-column",
        default=X_COLUMN,
        help="X coordinate column name",
    )
    run.add_argument(
        "--y-column",
        default=Y_COLUMN,
        help="Y coordinate column name",
    )
    run.add_argument(
        "--trace-out",
        help="Optional file receiving one trace record per iteration",
    )
    run.add_argument(
        "--trace-format",
        choices=["jsonl", "csv"],
        default="jsonl",
        help="Format used when writing --trace-out",
    )
    run.add_argument(
        "--metrics",
        help="Optional path to persist run metrics (JSON)",
    )
    run.add_argument(
        "--diagnostics-dir",
        help="Directory where diagnostics artifacts will be written (defaults to the output directory)",
    )
    run.add_argument(
        "--no-diagnostics",
        action="store_false",
        dest="diagnostics",
        help="Disable diagnostics sidecar outputs",
    )
    run.set_defaults(handler=_handle_run, diagnostics=True)

    fixtures = subparsers.add_parser(
        "fixtures",
        help="List the bundled fixture scenarios",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    fixtures.set_defaults(handler=_handle_fixtures)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if getattr(args, "version", False):
        print(f"itercluster {_get_package_version()}")
        raise SystemExit(0)

    _configure_logging(args.verbose)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except IterclusterCliError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(f"Error: {exc}") from exc


def _configure_logging(verbosity: int) -> None:
    level = _LOG_LEVELS[min(max(verbosity, 0), len(_LOG_LEVELS) - 1)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("itercluster").setLevel(level)


def _handle_fixtures(args: argparse.Namespace) -> None:
    for name in available_fixtures():
        print(name)


def _handle_run(args: argparse.Namespace) -> None:
    frame = _load_dataset(args.points, args)

    params = DBScanParameters(
        distance_threshold=args.eps,
        min_points=args.min_points,
        neighbor_index=args.neighbor_index,
        frontier_batch_size=args.frontier_batch_size,
        reclaim_noise=args.reclaim_noise,
        fold_completion=args.fold_completion,
        cluster_id_prefix=args.cluster_prefix,
    )

    try:
        items = items_from_frame(
            frame,
            id_column=args.id_column,
            x_column=args.x_column,
            y_column=args.y_column,
        )
        engine = DBScanAlgorithm.from_parameters(items, params, rng=args.seed)
    except (ClusteringError, InvalidItemError) as exc:
        raise IterclusterCliError(str(exc)) from exc

    logger.info(
        "Clustering %d points with eps=%s min_points=%d",
        len(items),
        params.distance_threshold,
        params.min_points,
    )

    recorder = _RunRecorder(engine.name, trace=bool(args.trace_out))
    summary = summarize_run(recorder.observe(engine.iter_iterations()))
    final = recorder.final

    assignments = final.to_frame() if final is not None else pd.DataFrame(columns=FRAME_COLUMNS)
    _validate_output("assignment", assignments, string_fields=("item_id",))
    _write_table(assignments, Path(args.output))

    if args.clusters:
        clusters = (
            final.clusters_frame() if final is not None else pd.DataFrame(columns=CLUSTER_FRAME_COLUMNS)
        )
        _validate_output("cluster", clusters, string_fields=("cluster_id", "member_ids"))
        _write_table(clusters, Path(args.clusters))

    if args.trace_out:
        _validate_trace(recorder.trace_rows)
        _write_trace(recorder.trace_rows, Path(args.trace_out), format_hint=args.trace_format)

    metrics: dict[str, object] = {
        "algorithm": engine.name,
        **params.to_dict(),
        "seed": args.seed,
        "total_points": summary["total_items"],
        "iterations": summary["iterations"],
        "num_clusters": summary["cluster_count"],
        "noise_points": summary["noise_items"],
        "noise_ratio": summary["noise_ratio"],
        "fingerprint": summary["fingerprint"],
    }
    if args.metrics:
        _write_json(metrics, Path(args.metrics))

    if args.diagnostics:
        diagnostics_dir = (
            Path(args.diagnostics_dir).expanduser().resolve()
            if args.diagnostics_dir
            else Path(args.output).expanduser().resolve().parent
        )
        _emit_diagnostics(summary, assignments, diagnostics_dir=diagnostics_dir, metrics=metrics)

    print(
        f"{summary['cluster_count']} clusters, {summary['noise_items']} noise points "
        f"after {summary['iterations']} iterations"
    )


class _RunRecorder:
    """Pass iterations through while keeping the last one and optional trace rows."""

    def __init__(self, algorithm: str, *, trace: bool) -> None:
        self.algorithm = algorithm
        self.trace = trace
        self.final: Iteration | None = None
        self.trace_rows: list[dict[str, object]] = []

    def observe(self, iterations: Iterable[Iteration]) -> Iterator[Iteration]:
        for iteration in iterations:
            self.final = iteration
            if self.trace:
                self.trace_rows.append(trace_iteration(iteration, algorithm=self.algorithm).to_dict())
            yield iteration


def _validate_output(schema: str, frame: pd.DataFrame, *, string_fields: Sequence[str]) -> None:
    try:
        _SCHEMA_VALIDATOR.validate_frame(schema, frame, string_fields=string_fields)
    except SchemaValidationError as exc:
        raise IterclusterCliError(f"{schema.title()} output failed schema validation: {exc}") from exc


def _validate_trace(records: Sequence[dict[str, object]]) -> None:
    try:
        _SCHEMA_VALIDATOR.validate_records("trace", records)
    except SchemaValidationError as exc:
        raise IterclusterCliError(f"Trace output failed schema validation: {exc}") from exc


def _write_table(frame: pd.DataFrame, path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if path.suffix.lower() in {".json", ".jsonl", ".ndjson"}:
            frame.to_json(path, orient="records", lines=True)
        else:
            frame.to_csv(path, index=False)
    except OSError as exc:
        raise IterclusterCliError(f"Failed to write output to '{path}': {exc}") from exc


def _write_json(data: dict[str, object], path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as exc:
        raise IterclusterCliError(f"Failed to write JSON output to '{path}': {exc}") from exc


def _write_trace(
    records: Iterable[dict[str, object]],
    path: Path,
    *,
    format_hint: str,
) -> None:
    materialised = list(records)
    if not materialised:
        return

    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        if format_hint == "csv":
            fieldnames = sorted({key for record in materialised for key in record})
            with path.open("w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(handle, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(materialised)
        else:
            with path.open("w", encoding="utf-8") as handle:
                for record in materialised:
                    handle.write(json.dumps(record, sort_keys=True) + "\n")
    except OSError as exc:
        raise IterclusterCliError(f"Failed to write trace output to '{path}': {exc}") from exc


def _emit_diagnostics(
    summary: RunSummary,
    assignments: pd.DataFrame,
    *,
    diagnostics_dir: Path,
    metrics: dict[str, object],
) -> None:
    qa_signals = generate_qa_signals(summary)
    for warning in qa_signals["warnings"]:
        logger.warning(warning)

    payload = {
        "version": DIAGNOSTICS_VERSION,
        "metrics": metrics,
        "summary": summary,
        "qa": qa_signals,
    }
    try:
        write_json(payload, diagnostics_dir)
        if not assignments.empty:
            write_parquet(assignments, diagnostics_dir)
    except (OSError, ValueError) as exc:
        raise IterclusterCliError(f"Failed to write diagnostics to '{diagnostics_dir}': {exc}") from exc


def _load_dataset(location: str, args: argparse.Namespace) -> pd.DataFrame:
    try:
        return load_points(
            location,
            id_column=args.id_column,
            x_column=args.x_column,
            y_column=args.y_column,
        )
    except FileNotFoundError as exc:
        raise IterclusterCliError(f"Points file '{location}' was not found") from exc
    except MissingColumnsError as exc:
        raise IterclusterCliError(str(exc)) from exc
    except ValueError as exc:
        raise IterclusterCliError(str(exc)) from exc


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
