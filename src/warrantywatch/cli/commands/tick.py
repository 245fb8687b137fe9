"""``tick``: run one scan-and-notify pass now."""

from __future__ import annotations

import json

from warrantywatch.cli.commands._common import echo, fail, open_database


def run_tick(config, args) -> None:
    from warrantywatch.app import create_engine

    db = open_database(config, args)
    try:
        engine = create_engine(config.settings, database=db)
        summary = engine.worker.run_once()
    except Exception as exc:
        if args.debug:
            raise
        fail(f"tick failed: {exc}")
        return

    if summary is None:
        fail("another tick is already running")
        return
    echo(json.dumps(summary.as_dict(), indent=2))
    if summary.failed:
        fail(f"{summary.failed} candidate(s) could not be notified", code=2)
