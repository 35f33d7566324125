import sys
from raystream.app import main

sys.exit(main())
