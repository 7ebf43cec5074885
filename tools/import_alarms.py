import json
import sys
from pathlib import Path

from alarms.commands import AlarmCommands
from alarms.errors import ValidationError
from alarms.payload import parse_import_document
from alarms.store import AlarmStore
from config import load_config, setup_logging
from time_utils import resolve_timezone


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    replace_existing = "--replace" in args
    paths = [a for a in args if a != "--replace"]
    if len(paths) != 1:
        print("usage: import_alarms.py FILE [--replace]")
        return 2

    cfg = load_config()
    setup_logging(cfg.log_level, cfg.log_dir)
    try:
        payloads = parse_import_document(Path(paths[0]).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        print(f"Import failed: {exc}")
        return 1

    store = AlarmStore(cfg.alarms_path, timezone=resolve_timezone(cfg.timezone_name))
    result = AlarmCommands(store).import_alarms(payloads, replace_existing)
    if not result.ok:
        print(f"Import failed: {result.error}")
        return 1
    print(json.dumps(result.alarms, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
