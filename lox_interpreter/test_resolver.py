import io
from contextlib import redirect_stderr

import pytest

from lox_interpreter.lexer import Lexer
from lox_interpreter.parser import Parser
from lox_interpreter.resolver import Resolver
from lox_interpreter.tokens import Token, TokenType
from lox_interpreter import ast_nodes as ast


def resolve_source(source):
    """
    Runs the lexer, parser, and resolver. Returns the statements, the
    resolver and whatever it reported.
    """
    statements = Parser(Lexer(source).scan_tokens()).parse()
    stderr = io.StringIO()
    with redirect_stderr(stderr):
        resolver = Resolver()
        resolver.resolve(statements)
    return statements, resolver, stderr.getvalue()


# --- Distances ---

def test_globals_get_no_entry():
    statements, resolver, _ = resolve_source("var g = 1; print g; g = 2;")
    assert resolver.locals == {}


def test_distance_counts_enclosing_blocks():
    statements, resolver, _ = resolve_source("var g = 1; { var a = 1; { print a; print g; } }")
    inner = statements[1].statements[1]
    a_ref = inner.statements[0].expression
    g_ref = inner.statements[1].expression
    assert resolver.locals[a_ref] == 1
    assert g_ref not in resolver.locals


def test_assignment_is_resolved_on_the_assign_node():
    statements, resolver, _ = resolve_source("{ var a; { a = 2; } }")
    assign = statements[0].statements[1].statements[0].expression
    assert resolver.locals[assign] == 1


def test_parameters_and_recursive_local_function():
    statements, resolver, _ = resolve_source("{ fun fact(n) { { return fact(n); } } }")
    function = statements[0].statements[0]
    call = function.body[0].statements[0].value
    # inner block -> function scope (n) -> enclosing block (fact)
    assert resolver.locals[call.callee] == 2
    assert resolver.locals[call.arguments[0]] == 1


def test_lambda_body_is_resolved():
    statements, resolver, _ = resolve_source("{ var y = 1; var f = fun (x) { return x + y; }; }")
    function = statements[0].statements[1].initializer
    binary = function.body[0].value
    assert resolver.locals[binary.left] == 0
    assert resolver.locals[binary.right] == 1


def test_identical_references_resolve_independently():
    statements, resolver, _ = resolve_source("{ var a = 1; print a; { print a; } }")
    block = statements[0]
    first = block.statements[1].expression
    second = block.statements[2].statements[0].expression
    assert resolver.locals[first] == 0
    assert resolver.locals[second] == 1


def test_later_declaration_does_not_capture_earlier_reference():
    statements, resolver, _ = resolve_source("{ fun show() { print a; } var a = 1; }")
    reference = statements[0].statements[0].body[0].expression
    assert reference not in resolver.locals


# --- Static errors ---

STATIC_ERRORS = [
    ("Redeclared Local", "{ var a = 1; var a = 2; }", "Already a variable with this name in this scope."),
    ("Duplicate Parameter", "fun f(a, a) {}", "Already a variable with this name in this scope."),
    ("Local in Its Own Initializer", "{ var a = a; }", "Can't read local variable in its own initializer."),
    ("Global in Its Own Initializer", "var a = a;", "Can't read local variable in its own initializer."),
    ("Top-Level Return", "return 1;", "Can't return from top-level code."),
    ("Return After Function Body", "fun f() {} return 2;", "Can't return from top-level code."),
]


@pytest.mark.parametrize("name, source, expected_error", STATIC_ERRORS, ids=[t[0] for t in STATIC_ERRORS])
def test_static_error(name, source, expected_error):
    _, resolver, output = resolve_source(source)
    assert resolver.had_error
    assert expected_error in output


VALID_PROGRAMS = [
    ("Redeclared Global", "var a = 1; var a = 2;"),
    ("Shadowing Enclosing Scope", "{ var a = 1; { var a = 2; } }"),
    ("Shadowing a Global", "var a = 1; { var a = 2; print a; }"),
    ("Return Inside Function", "fun f() { return 1; }"),
    ("Return Inside Lambda", "var f = fun () { return 1; };"),
    ("Self-Reference Inside Lambda", "var f = fun () { return f; };"),
    ("Break Is Not Checked Statically", "break;"),
]


@pytest.mark.parametrize("name, source", VALID_PROGRAMS, ids=[t[0] for t in VALID_PROGRAMS])
def test_valid_program(name, source):
    _, resolver, output = resolve_source(source)
    assert not resolver.had_error, output


def test_errors_accumulate():
    _, resolver, output = resolve_source("return 1;\n{ var b = b; }\n{ var c; var c; }")
    assert len(resolver.errors) == 3
    assert [error.line for error in resolver.errors] == [1, 2, 3]
    assert "[Line 2] Error at 'b': Can't read local variable in its own initializer." in output


# --- Nesting deeper than the stack ---

def test_long_operator_chain_is_reported_not_raised():
    # The parser folds the chain in a loop; walking the tree recurses per operator.
    source = "print a;\nprint " + " + ".join(["1"] * 5000) + ";\nprint b;"
    _, resolver, output = resolve_source(source)
    assert resolver.had_error
    assert len(resolver.errors) == 1
    assert resolver.errors[0].line == 2
    assert "[Line 2] Error at '+': Nesting too deep." in output


def test_resolution_continues_after_deep_nesting():
    brace = Token(TokenType.LEFT_BRACE, "{", None, 1)
    deep = ast.Print(ast.Literal(1.0))
    for _ in range(5000):
        deep = ast.Block(brace, [deep])
    statements = Parser(Lexer("{ var a = 1; print a; }").scan_tokens()).parse()

    stderr = io.StringIO()
    with redirect_stderr(stderr):
        resolver = Resolver()
        resolver.resolve([deep] + statements)

    assert "[Line 1] Error at '{': Nesting too deep." in stderr.getvalue()
    assert resolver.scopes == []
    reference = statements[0].statements[1].expression
    assert resolver.locals[reference] == 0
