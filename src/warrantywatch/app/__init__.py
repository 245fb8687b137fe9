"""Engine assembly and process lifecycle."""

from warrantywatch.app.factory import Engine, create_engine
from warrantywatch.app.shutdown import GracefulShutdown

__all__ = ["Engine", "GracefulShutdown", "create_engine"]
