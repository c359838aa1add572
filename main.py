"""storyframe server: Flask app with structured request logging and error tracking."""

import sys

from requestlog.app import main

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
