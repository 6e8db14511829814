import sys

from achievement_minter.scheduler.engine import main

sys.exit(main())
