import sys

from sqlite_inspect.main import main

sys.exit(main())
