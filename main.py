"""Arranque de ogs-board desde el checkout, sin `pip install -e .`.

Añade `src/` al `sys.path` y delega en la app Typer:
- `python main.py render --tournament 59567 --output reports/board.html`
- `python main.py render --player <usuario> --progressive`
- `python main.py standings`
- `python main.py doctor`
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
