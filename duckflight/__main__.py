# -*- coding: utf-8 -*-
"""Entry point for ``python -m duckflight``."""

from .cli import main

if __name__ == "__main__":
    main()
