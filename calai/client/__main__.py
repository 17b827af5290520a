import sys

from calai.client.cli import main

sys.exit(main())
