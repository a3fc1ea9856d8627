"""Entry point for `python -m kubeintervals`.

Usage:
    python -m kubeintervals
"""

from __future__ import annotations

import asyncio

from kubeintervals.app import main

asyncio.run(main())
