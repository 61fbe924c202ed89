"""CLI command registration and handlers for twinprobe."""

from __future__ import annotations

import argparse
import ast
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from twinprobe.analysis import format_trace_lines, trace_probe_insert, trace_probe_search
from twinprobe.config import AppConfig
from twinprobe.contracts.error import BadInputError, Exit, IOErrorEnvelope
from twinprobe.core.primes import find_twin_prime
from twinprobe.core.strategy import STRATEGIES
from twinprobe.core.table import OpenAddressingTable, new_table


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    run_experiments: Callable[..., List[Any]]
    render_results: Callable[[List[Any]], str]
    app_config: Callable[[], AppConfig]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "run",
        "Fill linear-probing and double-hashing tables from one key source and compare probes.",
        lambda parser: _configure_run(parser, ctx),
    )
    _register(
        "twin-prime",
        "Print the larger member of the first twin-prime pair in a range.",
        lambda parser: _configure_twin_prime(parser, ctx),
    )
    _register(
        "probe",
        "Trace the probe path of a search or insert on a small table.",
        lambda parser: _configure_probe(parser, ctx),
    )
    return handlers


def _configure_run(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("source", help="Key source: 1|random, 2|date, 3|words")
    parser.add_argument("load_factor", help="Load factor in (0, 1] or 'all' for the standard sweep")
    parser.add_argument(
        "--debug",
        type=int,
        choices=[0, 1, 2],
        default=0,
        help="0: summary, 1: summary + table dumps, 2: summary + per-insert lines",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random-integer source")
    parser.add_argument("--word-list", default=None, help="Word list file for the words source")
    parser.add_argument("--dump-dir", default=None, help="Directory for dump files (debug level 1)")
    parser.add_argument("--json-summary-out", default=None, help="Write run summaries as JSON")

    def handler(args: argparse.Namespace) -> int:
        results = ctx.run_experiments(
            args.source,
            args.load_factor,
            debug_level=args.debug,
            seed=args.seed,
            word_list=args.word_list,
            dump_dir=args.dump_dir,
            json_summary_out=args.json_summary_out,
        )
        data: Dict[str, Any] = {"runs": [result.to_dict() for result in results]}
        if args.json_summary_out:
            data["json_summary_out"] = args.json_summary_out
        ctx.emit_success("run", text=ctx.render_results(results), data=data)
        return int(Exit.OK)

    return handler


def _configure_twin_prime(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--min", dest="lo", type=int, default=None, help="Range start (inclusive)")
    parser.add_argument("--max", dest="hi", type=int, default=None, help="Range end (inclusive)")

    def handler(args: argparse.Namespace) -> int:
        experiment = ctx.app_config().experiment
        lo = experiment.prime_min if args.lo is None else args.lo
        hi = experiment.prime_max if args.hi is None else args.hi
        if hi < lo:
            raise BadInputError(f"--max ({hi}) must be >= --min ({lo})")
        prime = find_twin_prime(lo, hi)
        if prime is None:
            raise BadInputError(f"No twin prime found in [{lo}..{hi}]", hint="Choose a wider range")
        ctx.emit_success(
            "twin-prime",
            text=str(prime),
            data={"min": lo, "max": hi, "twin_prime": prime, "pair": [prime - 2, prime]},
        )
        return int(Exit.OK)

    return handler


def _configure_probe(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("key", help="Key to trace (Python literal, else taken as a string)")
    parser.add_argument("--capacity", type=int, required=True, help="Table capacity")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), default="linear")
    parser.add_argument(
        "--op",
        choices=["search", "insert"],
        default="search",
        help="Operation to trace",
    )
    parser.add_argument(
        "--seed-key",
        action="append",
        default=[],
        metavar="KEY",
        help="Insert KEY before tracing (repeatable)",
    )
    parser.add_argument("--export-json", help="Write the trace payload to a JSON file (indent=2)")

    def handler(args: argparse.Namespace) -> int:
        table = new_table(args.capacity, args.strategy)
        _seed_table(table, args.seed_key)
        key = _parse_key(args.key)
        if args.op == "search":
            trace = trace_probe_search(table, key)
        else:
            trace = trace_probe_insert(table, key)

        export_path: Optional[Path] = None
        if args.export_json:
            export_path = Path(args.export_json).expanduser().resolve()
            try:
                export_path.parent.mkdir(parents=True, exist_ok=True)
                export_path.write_text(json.dumps(trace, indent=2, default=repr), encoding="utf-8")
            except OSError as exc:
                raise IOErrorEnvelope(f"Failed to write trace {export_path}: {exc}") from exc

        text_output = "\n".join(
            format_trace_lines(trace, seeds=args.seed_key, export_path=export_path)
        )
        payload: Dict[str, Any] = {"trace": trace, "stats": table.stats()}
        if args.seed_key:
            payload["seed_keys"] = list(args.seed_key)
        if export_path is not None:
            payload["export_json"] = str(export_path)
        ctx.emit_success("probe", text=text_output, data=payload)
        return int(Exit.OK)

    return handler


def _parse_key(text: str) -> Any:
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text
    try:
        hash(value)
    except TypeError as exc:
        raise BadInputError(f"Key {text!r} is not hashable") from exc
    return value


def _seed_table(table: OpenAddressingTable, seeds: List[str]) -> None:
    for raw in seeds:
        outcome = table.insert(_parse_key(raw))
        if outcome.table_full:
            raise BadInputError(
                f"Seed key {raw!r} does not fit: table of capacity {table.capacity} is full"
            )


__all__ = ["CLIContext", "register_subcommands"]
