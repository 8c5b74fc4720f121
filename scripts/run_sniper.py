#!/usr/bin/env python3
"""
Sniper launcher script.

Reads decoded pool and wallet events as JSON lines from the listener
process on stdin (or --events PATH) and trades them with the settings in
configs/sniper.yaml.
"""

import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sniper.runner.app import main


if __name__ == "__main__":
    if "--config" not in sys.argv:
        sys.argv[1:1] = ["--config", str(project_root / "configs" / "sniper.yaml")]

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nSniper stopped by user.")
        sys.exit(0)
