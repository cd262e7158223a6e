"""Entry point for `python -m notedash`."""

import sys


def main():
    from notedash.app import run_app
    sys.exit(run_app())


if __name__ == "__main__":
    main()
