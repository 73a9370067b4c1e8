import sys

from vnest.cli import main

sys.exit(main())
