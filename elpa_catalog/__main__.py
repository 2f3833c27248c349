import sys

from elpa_catalog.collect_all import main

sys.exit(main())
