import os
import json
import logging
import sys

from .config import load_config
from .errors import EventHandlerError
from .events import parse_event
from .handlers import process_event

USAGE = """usage: host-event-handler [--github-token TOKEN --event-payload PATH]

  --github-token   GitHub Personal Access Token (PAT)
  --event-payload  File path to github action event

Without --event-payload the event is read from the INPUT_EVENT env variable.
"""


def usage():
    print(USAGE, file=sys.stderr)
    sys.exit(2)


def _flag(argv, name):
    for i, a in enumerate(argv):
        if a == name and i + 1 < len(argv):
            return argv[i + 1]
        if a.startswith(name + "="):
            return a.split("=", 1)[1]
    return None


def _read_raw_event(argv):
    token = _flag(argv, "--github-token")
    event_file = _flag(argv, "--event-payload")

    if not event_file:
        raw = os.getenv("INPUT_EVENT")
        if raw is None:
            print("missing INPUT_EVENT env variable", file=sys.stderr)
            usage()
        return raw

    if not token:
        print("missing argument token", file=sys.stderr)
        usage()

    with open(event_file, "r", encoding="utf-8") as f:
        content = f.read()
    # Actions masks the token as *** when dumping the github context
    return content.replace("***", token, 1)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "help":
        usage()

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        raw = _read_raw_event(argv)
    except OSError as exc:
        print(f"could not read event: {exc}", file=sys.stderr)
        return 1

    try:
        event = parse_event(raw)
        items = process_event(event, config=config, logger=logging.getLogger("hostevents"))
    except EventHandlerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps([item.to_dict() for item in items]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
