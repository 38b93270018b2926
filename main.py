# main.py
"""Command line entry point: publish a Jira release for a set of commits."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from errors import ReleaseError
from logging_utils import configure_logging, get_release_logger
from models import Commit, NextRelease, ReleaseContext
from publish import publish
from settings import PluginConfig, get_settings
from verify_conditions import verify_conditions

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def build_context(document: dict[str, Any]) -> ReleaseContext:
    next_release = document.get("nextRelease") or {}
    version = next_release.get("version")
    if not version:
        raise ValueError("release context is missing nextRelease.version")
    return ReleaseContext(
        commits=[Commit.from_dict(commit) for commit in document.get("commits", [])],
        next_release=NextRelease(version=str(version)),
        logger=get_release_logger(str(version)),
        env=dict(os.environ),
    )


def build_config(document: dict[str, Any], *, dry_run: bool) -> PluginConfig:
    config = PluginConfig.from_mapping(document)
    if dry_run:
        config = config.model_copy(update={"dry_run": True})
    return config


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--context", type=Path, required=True, help="release context JSON file")
    parser.add_argument("--config", type=Path, help="plugin options JSON file")
    parser.add_argument("--dry-run", action="store_true", help="skip mutating Jira calls")
    parser.add_argument("--skip-verify", action="store_true", help="do not run verify_conditions")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.json_enabled)

    context_doc = _load_json(args.context)
    config_doc = _load_json(args.config) if args.config else context_doc.get("options", {})
    config = build_config(config_doc, dry_run=args.dry_run)
    context = build_context(context_doc)

    try:
        if not args.skip_verify:
            verify_conditions(config, context)
        result = publish(config, context)
    except ReleaseError as err:
        logger.error(
            "release_failed",
            extra={"code": err.code, "error": err.message, "details": err.details},
        )
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
