"""
Module entry-point so the package runs with ``python -m flprocess``.

Behaves exactly like the ``flprocess-cli`` console script.
"""

from flprocess.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
