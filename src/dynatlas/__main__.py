import sys

from dynatlas.cli import main

sys.exit(main())
