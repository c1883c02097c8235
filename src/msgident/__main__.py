import sys

from msgident.cli import main

sys.exit(main())
