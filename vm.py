import logging
import sys

from program import Diagnostic
from scanner import prepare

log = logging.getLogger(__name__)

CELL_COUNT = 30000

INCREMENT = ord("+")
DECREMENT = ord("-")
MOVE_RIGHT = ord(">")
MOVE_LEFT = ord("<")
LOOP_OPEN = ord("[")
LOOP_CLOSE = ord("]")
OUTPUT = ord(".")
INPUT = ord(",")
DUMP = ord("#")
NEWLINE = ord("\n")


class BfiError(Exception):
    pass


class BfiRuntimeError(BfiError):
    def __init__(self, message: str, pc: int | None = None, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.line = line

    def format(self) -> str:
        if self.line is None:
            return self.message
        return f"[line {self.line}] {self.message}"

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(self.message, self.line, self.pc)

    def __str__(self) -> str:
        return self.format()


class BfiPrepareError(BfiError):
    def __init__(self, diagnostics):
        super().__init__("program has unbalanced brackets")
        self.diagnostics = list(diagnostics)

    def __str__(self) -> str:
        return "\n".join(str(d) for d in self.diagnostics)


class TapeBoundsError(BfiError):
    def __init__(self, instruction: str, cursor: int):
        super().__init__(f"'{instruction}' causes cell out of bounds")
        self.instruction = instruction
        self.cursor = cursor


class Tape:
    """Fixed number of unsigned 8-bit cells and a cursor, all starting at zero."""

    def __init__(self, size: int = CELL_COUNT):
        if size < 1:
            raise ValueError(f"tape size must be at least 1, got {size}")
        self.cells = bytearray(size)
        self.cursor = 0

    def __len__(self):
        return len(self.cells)

    def get(self) -> int:
        return self.cells[self.cursor]

    def set(self, value: int):
        self.cells[self.cursor] = value & 0xFF

    def increment(self):
        self.cells[self.cursor] = (self.cells[self.cursor] + 1) & 0xFF

    def decrement(self):
        self.cells[self.cursor] = (self.cells[self.cursor] - 1) & 0xFF

    def move_right(self):
        if self.cursor == len(self.cells) - 1:
            raise TapeBoundsError(">", self.cursor)
        self.cursor += 1

    def move_left(self):
        if self.cursor == 0:
            raise TapeBoundsError("<", self.cursor)
        self.cursor -= 1

    def window(self, before: int = 2, count: int = 10) -> range:
        start = max(0, self.cursor - before)
        end = min(start + count, len(self.cells))
        return range(start, end)

    def dump(self) -> str:
        lines = [f"{'CELL':>5}{'':<2}VALUE (dec|hex)"]
        for i in self.window():
            val = self.cells[i]
            marker = " <" if i == self.cursor else ""
            lines.append(f"{i:05d}{':':<2}{val:03d}|0x{val:02X}{marker}")
        return "\n".join(lines) + "\n"


class VM:
    def __init__(
        self,
        program,
        stdin=None,
        stdout=None,
        tape_size: int = CELL_COUNT,
        debug: bool = False,
        max_steps: int | None = None,
    ):
        if not program.ok:
            raise BfiPrepareError(program.diagnostics)

        self.program = program
        self.source = program.source
        self.jumps = program.jumps

        self.tape = Tape(tape_size)
        self.pc = 0          # program counter (offset into source)
        self.steps = 0
        self.debug = debug   # enables the # instruction
        self.max_steps = max_steps  # set to an int to guard against infinite loops

        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.stdout = stdout if stdout is not None else sys.stdout.buffer

    @property
    def finished(self) -> bool:
        return self.pc >= len(self.source)

    def current_line(self):
        return self.program.line_at(self.pc)

    def write_byte(self, value: int):
        self.stdout.write(bytes((value,)))
        if value == NEWLINE:
            self.stdout.flush()

    def read_byte(self):
        # prompts written so far must be visible before blocking
        self.stdout.flush()
        data = self.stdin.read(1)
        if not data:
            return None
        return data[0]

    def step(self) -> bool:
        if self.finished:
            return True

        op = self.source[self.pc]
        tape = self.tape

        if op == INCREMENT:
            tape.increment()
        elif op == DECREMENT:
            tape.decrement()
        elif op == MOVE_RIGHT:
            tape.move_right()
        elif op == MOVE_LEFT:
            tape.move_left()
        elif op == LOOP_OPEN:
            if tape.get() == 0:
                self.pc = self.jumps[self.pc]
        elif op == LOOP_CLOSE:
            # back to the matching [, which re-tests the cell
            self.pc = self.jumps[self.pc]
            return False
        elif op == OUTPUT:
            self.write_byte(tape.get())
        elif op == INPUT:
            value = self.read_byte()
            if value is not None:
                tape.set(value)
        elif op == DUMP:
            if self.debug:
                self.stdout.write(tape.dump().encode("ascii"))
                self.stdout.flush()

        self.pc += 1
        return self.finished

    def run(self):
        try:
            while not self.finished:
                if self.max_steps is not None and self.steps >= self.max_steps:
                    raise BfiRuntimeError(
                        "Step limit exceeded (possible infinite loop)",
                        pc=self.pc,
                        line=self.current_line(),
                    )
                self.steps += 1
                self.step()
        except TapeBoundsError as e:
            raise BfiRuntimeError(str(e), pc=self.pc, line=self.current_line())
        finally:
            self.stdout.flush()
            log.debug("executed %d steps, pc=%d cursor=%d", self.steps, self.pc, self.tape.cursor)


class RunResult:
    def __init__(self, ok: bool, errors=None, vm=None):
        self.ok = ok
        self.errors = errors or []  # list[Diagnostic]
        self.vm = vm

    def __bool__(self):
        return self.ok

    def __repr__(self):
        return f"RunResult(ok={self.ok}, errors={self.errors!r})"


def run_source(source: bytes, **vm_options) -> RunResult:
    """Prepare and execute a program, collecting every error instead of raising.

    Keyword arguments are passed to VM. Output already written by the program
    stays written when execution fails.
    """
    program = prepare(source)
    if not program.ok:
        return RunResult(False, program.diagnostics)

    vm = VM(program, **vm_options)
    try:
        vm.run()
    except BfiRuntimeError as e:
        return RunResult(False, [e.to_diagnostic()], vm)
    return RunResult(True, vm=vm)
