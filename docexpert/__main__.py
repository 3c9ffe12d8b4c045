"""Module entrypoint for running docexpert as ``python -m docexpert``."""

from __future__ import annotations

from docexpert.cli import main


if __name__ == "__main__":
    main()
