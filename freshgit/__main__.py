"""Module entrypoint for `python -m freshgit`."""

from __future__ import annotations

from .cli import app


def main() -> None:
    app(prog_name="freshgit")


if __name__ == "__main__":
    main()
