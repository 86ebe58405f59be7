"""
Entry point for `python -m pdfsig`.

Usage:
    python -m pdfsig placeholder --file document.pdf --out prepared.pdf
    python -m pdfsig digest --file prepared.pdf
    python -m pdfsig sign --file prepared.pdf --out signed.pdf --signature <base64>
"""

from .ui.cli import main

main()
