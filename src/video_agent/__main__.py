"""Allow ``python -m video_agent``."""

import sys

from video_agent.launcher import main

if __name__ == "__main__":
    sys.exit(main())
