"""Allow ``python -m onprem_quickstart``."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
