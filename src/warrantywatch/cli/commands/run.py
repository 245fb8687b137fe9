"""``run``: start the engine and block until a stop signal."""

from __future__ import annotations

import logging

from warrantywatch.cli.commands._common import fail, open_database

log = logging.getLogger(__name__)


def run_engine(config, args) -> None:
    from warrantywatch.app import GracefulShutdown, create_engine

    if not config.settings.engine.enabled:
        fail("engine.enabled is false; nothing to run")

    db = open_database(config, args)
    try:
        engine = create_engine(config.settings, database=db)
    except (ValueError, TypeError, ImportError) as exc:
        if args.debug:
            raise
        fail(f"engine setup failed: {exc}")

    shutdown = GracefulShutdown()
    shutdown.register_signals()

    engine.worker.start()
    log.info("Engine running; send SIGINT or SIGTERM to stop")
    try:
        shutdown.wait()
    except KeyboardInterrupt:
        log.info("Interrupted")
    finally:
        engine.worker.stop()
        if engine.metrics is not None:
            log.debug("Final metrics:\n%s", engine.metrics.export())
