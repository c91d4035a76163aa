"""Stage banners, signal handling and the end-of-run report.

``build_session`` wraps a whole pipeline run.  However the run ends,
normally, with a BuildError, or through one of the trapped signals, the
session prints exactly one final report and exits with the matching
status.  Statuses of 124 and above mean timeout or user interruption and
get a short notice instead of the timing report.
"""

import os
import signal
import sys
import time
import traceback
from contextlib import contextmanager
from datetime import datetime

from errors import BuildError, SignalInterruption

INTERRUPT_THRESHOLD = 124

# signal -> (exit code, description)
SIGNAL_EXIT_CODES = {
    signal.SIGHUP: (129, "SIGHUP,logout"),
    signal.SIGINT: (130, "SIGINT,Ctrl+C"),
    signal.SIGQUIT: (131, "SIGQUIT,Ctrl+\\"),
    signal.SIGTERM: (143, "SIGTERM,kill"),
}


def banner(*words):
    print("=" * 60)
    print(" ".join(str(w) for w in words))
    print("=" * 60)


def _signal_handler(signum, frame):
    code, desc = SIGNAL_EXIT_CODES[signum]
    message = f"interrupted by user({desc})"
    print(message, file=sys.stderr)
    raise SignalInterruption(signum, code, message)


def install_signal_handlers():
    """Trap the four termination signals.  Returns the previous handlers."""
    previous = {}
    for signum in SIGNAL_EXIT_CODES:
        previous[signum] = signal.signal(signum, _signal_handler)
    return previous


def restore_signal_handlers(previous):
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def finish(exit_code, start, prog=None):
    """Print the final report and exit with *exit_code*."""
    if exit_code >= INTERRUPT_THRESHOLD:
        prog = prog or os.path.basename(sys.argv[0])
        print(f"this script({prog}) timeout or interrupted by user({exit_code}).")
        sys.exit(exit_code)
    print(datetime.now().strftime("%Y/%m/%d %H:%M:%S"))
    print(f"total time: {int(time.time() - start)}s")
    print(f"exit code: {exit_code}")
    sys.exit(exit_code)


def _exit_status(code):
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    # sys.exit("message") semantics
    print(code, file=sys.stderr)
    return 1


@contextmanager
def build_session(prog=None):
    """Run the enclosed block with signal traps and a guaranteed report.

    Always leaves by raising SystemExit.
    """
    start = time.time()
    previous = install_signal_handlers()
    exit_code = 0
    try:
        yield start
    except SignalInterruption as e:
        exit_code = e.exit_code
    except BuildError as e:
        print(f"error: {e}", file=sys.stderr)
        exit_code = e.exit_code
    except SystemExit as e:
        exit_code = _exit_status(e.code)
    except Exception:
        traceback.print_exc()
        exit_code = 1
    finally:
        restore_signal_handlers(previous)
    finish(exit_code, start, prog)
