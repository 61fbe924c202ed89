"""
app.py

Command-line front end for twinprobe:
- run experiments comparing linear probing and double hashing on one key source
- sweep the standard load factors with ``all``
- locate twin-prime capacities
- trace the probe path of a single search or insert
- console or JSON logging, optional rotating log file
- TOML config with environment overrides
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import os
import sys
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from twinprobe.cli.commands import CLIContext, register_subcommands
from twinprobe.config import AppConfig, load_app_config
from twinprobe.contracts.error import BadInputError, IOErrorEnvelope, guard_cli
from twinprobe.experiment import ExperimentResult, format_summary, run_experiments
from twinprobe.workloads import resolve_source

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("twinprobe")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


def _parse_load_factors(raw: str) -> list[float]:
    if raw.strip().lower() == "all":
        return list(APP_CONFIG.experiment.load_factors)
    try:
        value = float(raw)
    except ValueError as exc:
        raise BadInputError(f"Load factor must be a number or 'all' (got {raw!r})") from exc
    if not 0.0 < value <= 1.0:
        raise BadInputError(f"Load factor must be in (0, 1] (got {value})")
    return [value]


def run_hash_experiments(
    source: str,
    load_factor: str,
    *,
    debug_level: int = 0,
    seed: int | None = None,
    word_list: str | None = None,
    dump_dir: str | None = None,
    json_summary_out: str | None = None,
) -> list[ExperimentResult]:
    """Run one experiment per requested load factor using the active config."""

    spec = resolve_source(source)
    load_factors = _parse_load_factors(load_factor)
    overrides: dict[str, Any] = {}
    if seed is not None:
        overrides["seed"] = seed
    if word_list is not None:
        overrides["word_list"] = word_list
    cfg = replace(APP_CONFIG, experiment=replace(APP_CONFIG.experiment, **overrides))

    # with --json the per-insert lines travel in each run's "inserts" list
    print_fn = None if OUTPUT_JSON else print
    results = run_experiments(
        spec,
        load_factors,
        config=cfg,
        debug_level=debug_level,
        print_fn=print_fn,
        dump_dir=dump_dir,
    )

    if json_summary_out:
        out_path = Path(json_summary_out).expanduser()
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(
                json.dumps({"runs": [r.to_dict() for r in results]}, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise IOErrorEnvelope(f"Failed to write summary {out_path}: {exc}") from exc
        logger.info("Wrote JSON summary to %s", out_path)
    return results


def render_results(results: list[ExperimentResult]) -> str:
    blocks = ["\n".join(format_summary(result)) for result in results]
    return "\n\n".join(blocks)


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description=(
            "Open-addressing hashtable experiments: linear probing vs. double hashing "
            "on twin-prime capacities, with probe tracing."
        )
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (env overrides still apply)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        run_experiments=run_hash_experiments,
        render_results=render_results,
        app_config=lambda: APP_CONFIG,
        logger=logger,
        json_enabled=lambda: OUTPUT_JSON,
        guard=guard_cli,
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv("TWINPROBE_CONFIG")
    cfg = guard_cli(load_app_config)(cfg_path)
    set_app_config(cfg)
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)

    return handlers[args.cmd](args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "console_main",
    "emit_success",
    "main",
    "render_results",
    "run_hash_experiments",
    "set_app_config",
]


if __name__ == "__main__":
    console_main()
