"""
Find and summarize the trials described by a YAML dataset description.

Usage:
    python -m dataset_manager.cli dataset.yaml

    # Skip known duplicates, and save newly found ones for review:
    python -m dataset_manager.cli dataset.yaml --ignore-file ignore.txt --conflicts-out dups.txt
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .errors import DatasetError
from .trials.summary import summarize

logger = logging.getLogger(__name__)


def _read_ignore_file(path: Path) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def run(
    config_path: Path,
    ignore_file: Optional[Path] = None,
    strict: Optional[bool] = None,
    conflicts_out: Optional[Path] = None,
    subject_type: Optional[str] = None,
    as_json: bool = False,
    list_trials: bool = False,
) -> int:
    """
    Resolve trials for a dataset description and print a summary.

    Returns:
        Process exit code (1 if duplicate sources were found)
    """
    config = load_config(config_path)
    if subject_type is not None:
        config.subject_type = subject_type
    registry = config.build_registry()

    ignorefiles = list(config.ignore_files)
    if ignore_file is not None:
        ignorefiles += _read_ignore_file(ignore_file)

    registry.find(
        config.build_subsets(),
        ignorefiles=ignorefiles,
        strict=config.strict if strict is None else strict,
    )

    if as_json:
        print(json.dumps([t.to_dict() for t in registry.trials], indent=2, default=str))
    else:
        if list_trials:
            for trial in registry.trials:
                print(trial.describe())
        print(summarize(registry.trials).to_text())

    if registry.conflicts:
        logger.warning("%d duplicate sources were skipped", len(registry.conflicts))
        if conflicts_out is not None:
            conflicts_out.parent.mkdir(parents=True, exist_ok=True)
            with open(conflicts_out, "w", encoding="utf-8") as f:
                for path in registry.ignore_list():
                    f.write(path + "\n")
            logger.info("Wrote %d duplicate paths to %s", len(registry.conflicts), conflicts_out)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Find trials described by a YAML dataset description"
    )
    parser.add_argument(
        "config",
        type=Path,
        help="Path to the dataset description (YAML)",
    )
    parser.add_argument(
        "--ignore-file",
        type=Path,
        default=None,
        help="File listing absolute paths to ignore, one per line",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Stop at the first duplicate source",
    )
    parser.add_argument(
        "--conflicts-out",
        type=Path,
        default=None,
        help="Write paths of skipped duplicate sources to this file",
    )
    parser.add_argument(
        "--subject-type",
        choices=["str", "int"],
        default=None,
        help="Override the subject type of the dataset description",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print resolved trials as JSON instead of a summary",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Describe every resolved trial before the summary",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        return run(
            args.config,
            ignore_file=args.ignore_file,
            strict=args.strict,
            conflicts_out=args.conflicts_out,
            subject_type=args.subject_type,
            as_json=args.json,
            list_trials=args.list,
        )
    except DatasetError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
