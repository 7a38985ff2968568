import sys

from docscan.cli import main

sys.exit(main())
