import logging
import signal
import time

from alarms.commands import AlarmCommands
from alarms.scheduler import AlarmScheduler, LoggingNotifier
from alarms.store import AlarmStore
from config import Config, load_config, setup_logging
from time_utils import format_tz_offset, resolve_timezone

logger = logging.getLogger("sebastian")


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


class AlarmRuntime:
    """Composition root: one store shared by the scheduler and the command handlers."""

    def __init__(self, config: Config):
        self.config = config
        self.tzinfo = resolve_timezone(config.timezone_name)
        self.store = AlarmStore(config.alarms_path, timezone=self.tzinfo)
        self.commands = AlarmCommands(self.store)
        self.scheduler = AlarmScheduler(
            self.store,
            notify=LoggingNotifier(logger),
            check_interval=config.check_interval,
        )

    def start(self) -> None:
        self.scheduler.start()

    def shutdown(self) -> None:
        self.scheduler.shutdown()


def main() -> None:
    config = load_config()
    setup_logging(config.log_level, config.log_dir)
    signal.signal(signal.SIGINT, graceful_exit)
    signal.signal(signal.SIGTERM, graceful_exit)

    runtime = AlarmRuntime(config)
    logger.info(
        "Starting Sebastian (storage=%s, timezone=%s %s)",
        config.alarms_path,
        getattr(runtime.tzinfo, "key", None) or "host offset",
        format_tz_offset(runtime.tzinfo),
    )
    for alarm in runtime.commands.list_alarms().alarms:
        logger.info("Armed: %s %s -> %s", alarm["timeLabel"], alarm["title"], alarm["nextFireTime"])

    runtime.start()
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        runtime.shutdown()


if __name__ == "__main__":
    main()
