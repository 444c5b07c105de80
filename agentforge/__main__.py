import sys

from agentforge.main import main

sys.exit(main())
