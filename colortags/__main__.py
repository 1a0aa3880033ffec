import sys

from colortags.cli import run

sys.exit(run())
