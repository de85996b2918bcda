"""Allow ``python -m flprocess.cli``."""

from flprocess.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
