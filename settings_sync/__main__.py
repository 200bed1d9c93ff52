import sys

from settings_sync.cli import main

sys.exit(main())
