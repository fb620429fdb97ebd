import sys

import uvloop

from . import main


def run() -> None:
    sys.exit(uvloop.run(main()))


if __name__ == "__main__":
    run()
