import sys

from bigtable_autoscaler.main import main

sys.exit(main())
