"""Resume ingestion -- application entry point.

Equivalent to the ``resume-ingest`` console script:

    python main.py parse resume.pdf --strategy hybrid
"""

import sys

from resume_ingest.cli import main

if __name__ == "__main__":
    sys.exit(main())
