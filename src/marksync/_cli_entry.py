"""Console-script entry point for ``marksync``.

The library installs without click; only the ``cli`` extra pulls it in.
"""

from __future__ import annotations

import sys


def main() -> None:
    try:
        from .cli import main as cli_main
    except ModuleNotFoundError as exc:
        if exc.name != "click":
            raise
        sys.stderr.write(
            "marksync: the command line needs click; "
            "install it with: pip install 'marksync[cli]'\n"
        )
        raise SystemExit(1)
    cli_main(prog_name="marksync")
