"""Allow ``python -m camera_fleet`` to launch the supervisor."""

from __future__ import annotations

import sys


def main() -> None:
    from camera_fleet import run
    raise SystemExit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
