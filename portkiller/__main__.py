import sys

from portkiller.cli import main

sys.exit(main())
