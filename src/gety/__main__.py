import sys

from gety.cli import main

sys.exit(main())
