"""``scan``: dry run listing candidates and their urgency."""

from __future__ import annotations

from datetime import UTC, datetime

from warrantywatch.cli.commands._common import echo, fail, open_database


def run_scan(config, args) -> None:
    from warrantywatch.repositories.warranty import WarrantyRepository
    from warrantywatch.services.scanner import ExpirationScanner

    engine_settings = config.settings.engine
    db = open_database(config, args)
    scanner = ExpirationScanner(
        WarrantyRepository(db),
        default_threshold_days=engine_settings.default_threshold_days,
        expired_grace_days=engine_settings.expired_grace_days,
    )

    today = datetime.now(UTC).date()
    try:
        candidates = scanner.scan(today, lookahead_days=args.lookahead)
    except ValueError as exc:
        fail(str(exc))
        return
    if args.user:
        candidates = [c for c in candidates if c.user_id == args.user]

    if not candidates:
        echo(f"No expiring warranties as of {today.isoformat()}")
        return

    echo(f"{'TIER':<9} {'DAYS':>5}  {'EXPIRES':<10}  {'USER':<20} PRODUCT")
    for c in candidates:
        echo(
            f"{c.tier.value:<9} {c.days_left:>5}  {c.expiration_date.isoformat():<10}  "
            f"{c.user_id:<20} {c.record.display_name}",
        )
    echo(f"\n{len(candidates)} candidate(s) as of {today.isoformat()}")
