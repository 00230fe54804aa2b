import io
from contextlib import redirect_stderr

import pytest

from lox_interpreter.lexer import Lexer
from lox_interpreter.parser import Parser
from lox_interpreter.ast_printer import AstPrinter
from lox_interpreter import ast_nodes as ast


def parse(source):
    """Runs lexer -> parser, capturing reported syntax errors."""
    stderr = io.StringIO()
    with redirect_stderr(stderr):
        parser = Parser(Lexer(source).scan_tokens())
        statements = parser.parse()
    return parser, statements, stderr.getvalue()


def normalize(text):
    return "\n".join(line.strip() for line in text.strip().split("\n"))


PRINTED_PROGRAMS = [
    ("Variable Declaration and Precedence", "var x = 10 * (2 + 3);", "(var x (* 10 (group (+ 2 3))))"),
    ("Expression Statement with Equality", "1 + 1 == 2;", "(expr_stmt (== (+ 1 1) 2))"),
    ("Declaration without Initializer", "var y;", "(var y)"),
    ("Logical Precedence", "print a and b or c;", "(print (or (and a b) c))"),
    ("Right-Associative Assignment", "a = b = 3;", "(expr_stmt (assign a (assign b 3)))"),
    ("Nested Unary", "-!x;", "(expr_stmt (- (! x)))"),
    ("Chained Calls", "f(1)(2, x);", "(expr_stmt (call (call f 1) 2 x))"),
    ("Literals", 'print nil; print "hi"; print true;', '(print nil)\n(print "hi")\n(print true)'),
    ("If-Else", "if (a) print 1; else print 2;", "(if a (print 1) else (print 2))"),
    ("While with Break", "while (true) break;", "(while true (break))"),
    ("Function Declaration", "fun add(a, b) { return a + b; }", """
        (fun add(a, b) {
          (return (+ a b))
        })
    """),
    ("Lambda Initializer", "var f = fun (x) { return; };", """
        (var f (fun (x) {
          (return)
        }))
    """),
    ("For Loop Desugaring", "for (var i = 0; i < 3; i = i + 1) print i;", """
        (block
          (var i 0)
          (while (< i 3) (block
            (print i)
            (expr_stmt (assign i (+ i 1)))
          ))
        )
    """),
    ("For Loop without Clauses", "for (;;) break;", "(while true (break))"),
]


@pytest.mark.parametrize("name, source, expected", PRINTED_PROGRAMS, ids=[t[0] for t in PRINTED_PROGRAMS])
def test_printed_program(name, source, expected):
    parser, statements, output = parse(source)
    assert not parser.had_error, output
    assert normalize(AstPrinter().print_program(statements)) == normalize(expected)


def test_lambda_expression_statement():
    parser, statements, _ = parse("fun (a) { print a; }(1);")
    assert not parser.had_error
    call = statements[0].expression
    assert isinstance(call, ast.Call)
    assert isinstance(call.callee, ast.Lambda)
    assert [p.lexeme for p in call.callee.params] == ["a"]


def test_missing_variable_name():
    parser, _, output = parse("var = 1;")
    assert parser.had_error
    assert "[Line 1] Error at '=': Expect variable name." in output


def test_invalid_assignment_target():
    parser, _, output = parse("1 = 2;")
    assert parser.had_error
    assert "Error at '=': Invalid assignment target." in output


def test_error_at_end():
    _, _, output = parse("print 1")
    assert "Error at end: Expect ';' after value." in output


def test_synchronizes_and_reports_every_error():
    parser, statements, _ = parse("var = 1;\nprint ;\nvar ok = 1;")
    assert len(parser.errors) == 2
    assert [error.line for error in parser.errors] == [1, 2]
    assert len(statements) == 1
    assert isinstance(statements[0], ast.Var)
    assert statements[0].name.lexeme == "ok"


def test_nodes_compare_by_identity():
    _, statements, _ = parse("a; a;")
    first, second = statements[0].expression, statements[1].expression
    assert first is not second
    assert first != second
    assert len({first, second}) == 2


def test_statements_carry_a_locating_token():
    _, statements, _ = parse('{\n}\nif (x)\n  print 1;\nprint\n  -2;\nfor (;;) break;\nprint 3;')
    block, branch, negation, loop, literal = statements
    assert ast.anchor_token(block).lexeme == "{"
    assert ast.anchor_token(branch).token_type.name == "IF"
    assert ast.anchor_token(negation).line == 6
    assert ast.anchor_token(loop).lexeme == "for"
    assert ast.anchor_token(literal) is None
