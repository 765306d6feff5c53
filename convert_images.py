"""CLI shim -- delegates to photoconv.cli.main().

Usage:
    python convert_images.py --to png --from jpg
    python convert_images.py --to webp --from jpg jpeg --input-dir ./photos
"""

import sys

from photoconv.cli import main

if __name__ == "__main__":
    sys.exit(main())
