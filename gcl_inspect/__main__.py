"""Allow ``python -m gcl_inspect``."""

from gcl_inspect.main import main

if __name__ == "__main__":
    raise SystemExit(main())
