import sys

from bwmon.monitor import main

sys.exit(main())
