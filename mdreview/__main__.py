import sys

from mdreview.cli import main

sys.exit(main())
