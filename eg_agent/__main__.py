import sys

from eg_agent.main import main

sys.exit(main())
