import logging
import sys
import traceback

import colorama
from colorama import Fore, Style

from scanner import prepare
from vm import VM, BfiError

VERSION = "0.2"

USAGE = """\
Usage: bfi [OPTION]... FILE
Options:
  -h, --help         Display usage information and exit.
      --version      Display version information and exit.
      --debug        Enable the # instruction for debugging.
      --verbose      Log preparation and execution details to stderr.
      --max-steps=N  Abort after N executed instructions."""

log = logging.getLogger(__name__)


class Options:
    def __init__(self):
        self.path = None
        self.debug = False
        self.verbose = False
        self.max_steps = None


def error(message: str):
    prefix = "error:"
    if sys.stderr.isatty():
        prefix = f"{Fore.RED}error:{Style.RESET_ALL}"
    print(f"{prefix} {message}", file=sys.stderr)


def usage():
    print(USAGE)


def parse_args(argv) -> Options:
    if not argv:
        usage()
        sys.exit(1)

    opts = Options()
    bad_option = False
    multiple_files = False
    for arg in argv:
        if arg in ("-h", "--help"):
            usage()
            sys.exit(0)
        if arg == "--version":
            print(VERSION)
            sys.exit(0)

        if arg == "--debug":
            opts.debug = True
            continue
        if arg == "--verbose":
            opts.verbose = True
            continue
        if arg.startswith("--max-steps="):
            value = arg.split("=", 1)[1]
            if not (value.isascii() and value.isdigit()) or int(value) < 1:
                error(f"Invalid value for --max-steps '{value}'")
                bad_option = True
                continue
            opts.max_steps = int(value)
            continue
        if arg.startswith("-"):
            error(f"Unrecognized command line option '{arg}'")
            bad_option = True
            continue

        if opts.path is not None:
            multiple_files = True
            continue
        opts.path = arg

    if multiple_files:
        error("More than one file provided")
    if bad_option or multiple_files:
        # every message has been printed in order, safe to stop
        sys.exit(1)
    if opts.path is None:
        usage()
        sys.exit(1)
    return opts


def load(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def cmd_run(opts: Options) -> int:
    try:
        source = load(opts.path)
    except OSError as e:
        error(e.strerror or str(e))
        return 1
    log.debug("loaded %d bytes from %s", len(source), opts.path)

    program = prepare(source)
    if not program.ok:
        for diag in program.diagnostics:
            error(str(diag))
        return 1

    try:
        vm = VM(program, debug=opts.debug, max_steps=opts.max_steps)
        vm.run()
    except BfiError as e:
        if opts.verbose:
            traceback.print_exc()
        error(str(e))
        return 1
    return 0


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    colorama.just_fix_windows_console()
    opts = parse_args(list(argv))

    logging.basicConfig(
        level=logging.DEBUG if opts.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )
    return cmd_run(opts)


if __name__ == "__main__":
    sys.exit(main())
