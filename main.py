"""Interactive viewer for the pipe puzzle.

Click a piece next to the gap to slide it, click the faucet or press space to
open it.  ``r`` resets the board, ``n`` deals a new one, ``s`` toggles
no-spill mode and ``1``/``2``/``3`` pick the difficulty.
"""

from __future__ import annotations

from pipe_puzzle.ui.main import main

if __name__ == "__main__":
    raise SystemExit(main())
