"""Interactive viewer for guard patrol maps.

Run from a checkout: ``python main.py --map sample_patrol``.
"""

from __future__ import annotations

from guard_patrol.ui.viewer import main

if __name__ == "__main__":
    raise SystemExit(main())
