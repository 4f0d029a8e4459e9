import sys

from .cli.main import main_cli

sys.exit(main_cli())
