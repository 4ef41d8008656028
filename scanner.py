import logging

from program import PreparedProgram

log = logging.getLogger(__name__)

NEWLINE = ord("\n")
LOOP_OPEN = ord("[")
LOOP_CLOSE = ord("]")


class Scanner:
    def __init__(self, source: bytes):
        self.source = bytes(source)
        self.pos = 0
        self.current_byte = self.source[0] if self.source else None
        self.line = 1

    def advance(self):
        # track line based on current_byte before moving
        if self.current_byte == NEWLINE:
            self.line += 1
        self.pos += 1
        if self.pos >= len(self.source):
            self.current_byte = None
        else:
            self.current_byte = self.source[self.pos]

    def scan(self) -> PreparedProgram:
        """Build the line index and jump table in one left-to-right pass.

        Unmatched brackets do not stop the pass; each one is recorded as a
        diagnostic on the returned program, unmatched ']' in scan order
        followed by unmatched '[' in ascending offset order.
        """
        program = PreparedProgram(self.source)
        pending = []  # offsets of [ not yet closed

        while self.current_byte is not None:
            offset = program.add_line(self.line)

            if self.current_byte == LOOP_OPEN:
                pending.append(offset)
            elif self.current_byte == LOOP_CLOSE:
                if not pending:
                    program.error("Unmatched ']'", offset)
                else:
                    program.link(pending.pop(), offset)

            self.advance()

        for offset in pending:
            program.error("Unmatched '['", offset)

        log.debug(
            "prepared %d bytes over %d lines: %d loops, %d errors",
            len(program), self.line, len(program.jumps) // 2, len(program.diagnostics),
        )
        return program


def prepare(source: bytes) -> PreparedProgram:
    return Scanner(source).scan()
