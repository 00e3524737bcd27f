import sys

from arc.main import main

sys.exit(main())
