"""``check``: verify channel configuration and connectivity."""

from __future__ import annotations

import sys

from warrantywatch.cli.commands._common import echo, fail


def run_check(config, args) -> None:
    from warrantywatch.channels.registry import build_channels

    try:
        channels = build_channels(config.settings)
    except (ValueError, TypeError, ImportError) as exc:
        if args.debug:
            raise
        fail(f"channel setup failed: {exc}")
        return

    if not channels:
        fail("no channels are enabled")
        return

    all_ok = True
    for kind, channel in sorted(channels.items()):
        ok, detail = channel.check()
        all_ok = all_ok and ok
        echo(f"{kind.value:<6} {channel.name:<8} {'OK' if ok else 'FAIL':<5} {detail}")

    if not all_ok:
        sys.exit(1)
