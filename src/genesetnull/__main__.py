import sys

from genesetnull.cli import main

sys.exit(main())
