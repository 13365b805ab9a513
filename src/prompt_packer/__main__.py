import sys

from prompt_packer.cli import main

sys.exit(main())
