class Diagnostic:
    def __init__(self, message: str, line: int, offset: int):
        self.message = message
        self.line = line      # 1-based source line
        self.offset = offset  # byte offset of the offending instruction

    def __str__(self) -> str:
        return f"[line {self.line}] {self.message}"

    def __repr__(self):
        return f"Diagnostic({self.message!r}, line={self.line}, offset={self.offset})"


class PreparedProgram:
    def __init__(self, source: bytes):
        self.source = bytes(source)  # immutable program bytes
        self.lines = []              # lines[i] = line number of source[i]
        self.jumps = {}              # offset of [ -> offset of ] and back
        self.diagnostics = []        # list[Diagnostic], empty when runnable

    def __len__(self):
        return len(self.source)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def add_line(self, line: int):
        self.lines.append(line)
        return len(self.lines) - 1

    def link(self, open_offset: int, close_offset: int):
        self.jumps[open_offset] = close_offset
        self.jumps[close_offset] = open_offset

    def error(self, message: str, offset: int, line: int | None = None):
        if line is None:
            line = self.lines[offset]
        diag = Diagnostic(message, line, offset)
        self.diagnostics.append(diag)
        return diag

    def line_at(self, offset: int):
        if offset < 0 or offset >= len(self.lines):
            return None
        return self.lines[offset]
