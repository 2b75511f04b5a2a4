import sys

from healthagg.main import main

sys.exit(main())
