import sys

from vpsswap.cli import init_main

sys.exit(init_main())
