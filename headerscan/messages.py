from typing import TextIO
import sys

from termcolor import colored

###############################################################################
# Output prefixes
###############################################################################

CHECKMARK    = '[' + colored("✓", "green") + ']'
CROSSMARK    = '[' + colored("✗", "red") + ']'
QUESTIONMARK = '[' + colored("?", "yellow") + ']'
INFOMARK     = '[' + colored("i", "blue") + ']'

RAW_PREFIX_WIDTH = len('[✓]')


def _message(prefix: str, *args, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    msg = '\n'.join(str(arg) for arg in args)
    first = True
    for line in msg.split('\n'):
        if first: print(f"{prefix} {line}", file=out)
        else:     print(f"{' ' * RAW_PREFIX_WIDTH} {line}", file=out)
        first = False

# Use CROSSMARK for errors
def error(*msg, stream: TextIO | None = None): _message(CROSSMARK, *msg, stream=stream)

# Use QUESTIONMARK for warnings
def warning(*msg, stream: TextIO | None = None): _message(QUESTIONMARK, *msg, stream=stream)

# Use INFOMARK for information
def info(*msg, stream: TextIO | None = None): _message(INFOMARK, *msg, stream=stream)

# Use CHECKMARK for success
def success(*msg, stream: TextIO | None = None): _message(CHECKMARK, *msg, stream=stream)
