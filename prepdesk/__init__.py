"""Checkout shim: lets ``python -m prepdesk.cli.<name>`` run from the repo root without installing."""

from __future__ import annotations

from pathlib import Path

_SRC_PACKAGE = Path(__file__).resolve().parents[1] / "src" / "prepdesk"

if _SRC_PACKAGE.is_dir():
    # Submodules live in src/prepdesk; this directory only holds the shim.
    __path__.append(str(_SRC_PACKAGE))
