import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from docs_search_sync.cli import main

if __name__ == "__main__":
    sys.exit(main())
