import sys

from correlator.pipeline import main


sys.exit(main())
