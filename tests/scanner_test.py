from scanner import prepare


def messages(program):
    return [str(d) for d in program.diagnostics]


def test_line_index_counts_newlines():
    program = prepare(b"+\n-\n\n>")
    if program.lines != [1, 1, 2, 2, 3, 4]:
        raise AssertionError(f"unexpected line index {program.lines}")
    if not program.ok:
        raise AssertionError(f"unexpected diagnostics {messages(program)}")


def test_empty_program():
    program = prepare(b"")
    if not program.ok or program.lines != [] or program.jumps != {}:
        raise AssertionError(f"lines={program.lines} jumps={program.jumps} errors={messages(program)}")


def test_jump_table_is_involution_on_nested_pairs():
    src = b"[[]][[[]]]"
    program = prepare(src)
    if not program.ok:
        raise AssertionError(f"unexpected diagnostics {messages(program)}")

    expected = {0: 3, 1: 2, 4: 9, 5: 8, 6: 7}
    for o, c in expected.items():
        if program.jumps.get(o) != c or program.jumps.get(c) != o:
            raise AssertionError(f"pair ({o}, {c}) not linked: {program.jumps}")

    for offset, target in program.jumps.items():
        if program.jumps[target] != offset:
            raise AssertionError(f"jump {offset} -> {target} does not return: {program.jumps}")

    brackets = [i for i, b in enumerate(src) if b in b"[]"]
    if sorted(program.jumps) != brackets:
        raise AssertionError(f"jump table keys {sorted(program.jumps)}, expected {brackets}")


def test_comments_do_not_enter_jump_table():
    program = prepare(b"loop [ body ] done")
    if program.jumps != {5: 12, 12: 5}:
        raise AssertionError(f"unexpected jump table {program.jumps}")


def test_unmatched_close_reports_its_line():
    program = prepare(b"+\n[]\n]\n")
    if len(program.diagnostics) != 1:
        raise AssertionError(f"expected one error, got {messages(program)}")
    diag = program.diagnostics[0]
    if (diag.line, diag.offset, str(diag)) != (3, 5, "[line 3] Unmatched ']'"):
        raise AssertionError(f"unexpected diagnostic {diag!r}")
    if program.ok:
        raise AssertionError("program with unmatched ']' must not be runnable")


def test_unmatched_open_reports_line_of_the_open():
    program = prepare(b"[\n\n+\n")
    if messages(program) != ["[line 1] Unmatched '['"]:
        raise AssertionError(f"unexpected diagnostics {messages(program)}")


def test_all_errors_are_collected_in_order():
    program = prepare(b"]\n[\n[]\n]]\n[")
    # ] at line 4 closes the [ on line 2, the second ] is unmatched
    expected = [
        "[line 1] Unmatched ']'",
        "[line 4] Unmatched ']'",
        "[line 5] Unmatched '['",
    ]
    if messages(program) != expected:
        raise AssertionError(f"unexpected diagnostics {messages(program)}")


def test_unmatched_opens_reported_outermost_first():
    program = prepare(b"[\n[\n[]")
    found = [(d.line, d.offset) for d in program.diagnostics]
    if found != [(1, 0), (2, 2)]:
        raise AssertionError(f"unexpected (line, offset) pairs {found}")
