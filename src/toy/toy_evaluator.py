"""
Tree-walking evaluator for the Toy language.

`evaluate(node, env)` walks an AST produced by the parser and returns the resulting
runtime `Object`. Statements that carry no value (`let`) evaluate to `None`.

Control flow is carried in return values, never in Python exceptions:

- a `return` statement produces a `ReturnValue`; blocks pass it outward untouched
  and it is unwrapped exactly once, at the enclosing function call or at the
  program level
- a runtime fault produces an `Error`; every compound step (blocks, programs,
  operands, call arguments, literal elements) stops at the first `Error` and hands
  it back unchanged

Dispatch is by node kind: a node of kind `if_expression` is handled by
`Evaluator.eval_if_expression`. A node kind with no
handler raises `NotImplementedError`.

Example:
    >>> program, errors = parse("let add = fn(a, b) { a + b }; add(2, 3)")
    >>> evaluate(program, new_environment()).inspect()
    '5'
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from toy.toy_ast import (
    ArrayLiteral,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    Expression,
    ExpressionStatement,
    FunctionLiteral,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    LetStatement,
    Node,
    PrefixExpression,
    Program,
    ReturnStatement,
    StringLiteral,
)
from toy.toy_builtins import builtins
from toy.toy_environment import Environment, new_enclosed_environment
from toy.toy_object import (
    FALSE,
    NULL,
    TRUE,
    Array,
    Boolean,
    Builtin,
    Error,
    Function,
    Hash,
    Hashable,
    HashKey,
    HashPair,
    Integer,
    Object,
    ReturnValue,
    String,
    is_error,
    is_truthy,
    native_bool_to_boolean,
    new_error,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)


def wrap_int64(value: int) -> int:
    """Reduces `value` to signed 64-bit two's complement."""
    return ((value - INT64_MIN) % 2**64) + INT64_MIN


def trunc_div(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(left) // abs(right)
    return -quotient if (left < 0) != (right < 0) else quotient


INTEGER_OPS: dict[str, Callable[[int, int], int | bool]] = {
    "+": lambda a, b: wrap_int64(a + b),
    "-": lambda a, b: wrap_int64(a - b),
    "*": lambda a, b: wrap_int64(a * b),
    "/": lambda a, b: wrap_int64(trunc_div(a, b)),
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}

STRING_OPS: dict[str, Callable[[str, str], str | bool]] = {
    "+": lambda a, b: a + b,
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
}


def _wrap(value: int | str | bool) -> Object:
    if isinstance(value, bool):
        return native_bool_to_boolean(value)
    if isinstance(value, int):
        return Integer(value)
    return String(value)


class Evaluator:
    """Evaluates AST nodes against an environment chain.

    The evaluator holds no per-program state; one instance may evaluate any number of
    programs, each against its own environment.
    """

    def evaluate(self, node: Node, env: Environment) -> Object | None:
        method_name = f"eval_{node.kind}"
        handler = getattr(self, method_name, None)
        if handler is None:
            raise NotImplementedError(
                f"No evaluator method for node kind '{node.kind}' "
                f"(line {node.token.line}, col {node.token.col})"
            )
        result: Object | None = handler(node, env)
        return result

    def _expr(self, node: Expression, env: Environment) -> Object:
        result = self.evaluate(node, env)
        if result is None:
            raise TypeError(
                f"expression of kind '{node.kind}' produced no value "
                f"(line {node.token.line}, col {node.token.col})"
            )
        return result

    # Statements

    def eval_program(self, node: Program, env: Environment) -> Object | None:
        result: Object | None = None
        for stmt in node.statements:
            result = self.evaluate(stmt, env)
            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, Error):
                return result
        return result

    def eval_block_statement(
        self, node: BlockStatement, env: Environment
    ) -> Object | None:
        result: Object | None = None
        for stmt in node.statements:
            result = self.evaluate(stmt, env)
            if isinstance(result, (ReturnValue, Error)):
                return result
        return result

    def eval_expression_statement(
        self, node: ExpressionStatement, env: Environment
    ) -> Object:
        return self._expr(node.expression, env)

    def eval_let_statement(self, node: LetStatement, env: Environment) -> Object | None:
        value = self._expr(node.value, env)
        if is_error(value):
            return value
        env.set(node.name.value, value)
        return None

    def eval_return_statement(self, node: ReturnStatement, env: Environment) -> Object:
        if node.return_value is None:
            return ReturnValue(NULL)
        value = self._expr(node.return_value, env)
        if is_error(value):
            return value
        return ReturnValue(value)

    # Literals

    def eval_integer_literal(self, node: IntegerLiteral, env: Environment) -> Object:
        return Integer(node.value)

    def eval_boolean_literal(self, node: BooleanLiteral, env: Environment) -> Object:
        return native_bool_to_boolean(node.value)

    def eval_string_literal(self, node: StringLiteral, env: Environment) -> Object:
        return String(node.value)

    def eval_array_literal(self, node: ArrayLiteral, env: Environment) -> Object:
        elements = self.eval_expressions(node.elements, env)
        if isinstance(elements, Error):
            return elements
        return Array(elements)

    def eval_hash_literal(self, node: HashLiteral, env: Environment) -> Object:
        pairs: dict[HashKey, HashPair] = {}
        for key_node, value_node in node.pairs:
            key = self._expr(key_node, env)
            if is_error(key):
                return key
            if not isinstance(key, Hashable):
                return new_error(f"unusable as hash key: {key.type()}")
            value = self._expr(value_node, env)
            if is_error(value):
                return value
            pairs[key.hash_key()] = HashPair(key, value)
        return Hash(pairs)

    def eval_function_literal(self, node: FunctionLiteral, env: Environment) -> Object:
        logger.debug(
            "closure created: fn(%s) captured env %#x",
            ", ".join(p.value for p in node.parameters),
            id(env),
        )
        return Function(node.parameters, node.body, env)

    def eval_identifier(self, node: Identifier, env: Environment) -> Object:
        value = env.get(node.value)
        if value is not None:
            return value
        builtin = builtins.get(node.value)
        if builtin is not None:
            return builtin
        return new_error(f"identifier not found: {node.value}")

    def eval_expressions(
        self, nodes: list[Expression], env: Environment
    ) -> list[Object] | Error:
        """Evaluates left to right, stopping at the first `Error`."""
        results: list[Object] = []
        for expr in nodes:
            value = self._expr(expr, env)
            if isinstance(value, Error):
                return value
            results.append(value)
        return results

    # Operators

    def eval_prefix_expression(
        self, node: PrefixExpression, env: Environment
    ) -> Object:
        right = self._expr(node.right, env)
        if is_error(right):
            return right
        return self.eval_prefix(node.operator, right)

    def eval_prefix(self, operator: str, right: Object) -> Object:
        if operator == "!":
            return FALSE if is_truthy(right) else TRUE
        if operator in ("-", "+") and isinstance(right, Integer):
            if operator == "-":
                return Integer(wrap_int64(-right.value))
            return right
        return new_error(f"unknown operator: {operator}{right.type()}")

    def eval_infix_expression(self, node: InfixExpression, env: Environment) -> Object:
        left = self._expr(node.left, env)
        if is_error(left):
            return left
        right = self._expr(node.right, env)
        if is_error(right):
            return right
        return self.eval_infix(node.operator, left, right)

    def eval_infix(self, operator: str, left: Object, right: Object) -> Object:
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self.eval_integer_infix(operator, left, right)
        if isinstance(left, String) and isinstance(right, String):
            return self.eval_string_infix(operator, left, right)
        if operator == "==":
            return native_bool_to_boolean(left is right)
        if operator == "!=":
            return native_bool_to_boolean(left is not right)
        if left.type() != right.type():
            return new_error(
                f"type mismatch: {left.type()} {operator} {right.type()}"
            )
        if operator in ("&&", "||") and isinstance(left, Boolean) and isinstance(
            right, Boolean
        ):
            if operator == "&&":
                return native_bool_to_boolean(left.value and right.value)
            return native_bool_to_boolean(left.value or right.value)
        return new_error(f"unknown operator: {left.type()} {operator} {right.type()}")

    def eval_integer_infix(self, operator: str, left: Integer, right: Integer) -> Object:
        op = INTEGER_OPS.get(operator)
        if op is None:
            return new_error(
                f"unknown operator: {left.type()} {operator} {right.type()}"
            )
        if operator == "/" and right.value == 0:
            return new_error("division by zero")
        return _wrap(op(left.value, right.value))

    def eval_string_infix(self, operator: str, left: String, right: String) -> Object:
        op = STRING_OPS.get(operator)
        if op is None:
            return new_error(
                f"unknown operator: {left.type()} {operator} {right.type()}"
            )
        return _wrap(op(left.value, right.value))

    # Control flow

    def eval_if_expression(self, node: IfExpression, env: Environment) -> Object | None:
        condition = self._expr(node.condition, env)
        if is_error(condition):
            return condition
        if is_truthy(condition):
            return self.eval_branch(node.consequence, env)
        if node.alternative is not None:
            return self.eval_branch(node.alternative, env)
        return NULL

    def eval_branch(self, block: BlockStatement, env: Environment) -> Object:
        result = self.eval_block_statement(block, env)
        return NULL if result is None else result

    # Calls and indexing

    def eval_call_expression(self, node: CallExpression, env: Environment) -> Object:
        function = self._expr(node.function, env)
        if is_error(function):
            return function
        args = self.eval_expressions(node.arguments, env)
        if isinstance(args, Error):
            return args
        return self.apply_function(function, args)

    def apply_function(self, fn: Object, args: list[Object]) -> Object:
        if isinstance(fn, Function):
            if len(args) != len(fn.parameters):
                return new_error(
                    f"wrong number of arguments: want={len(fn.parameters)}, got={len(args)}"
                )
            logger.debug("applying %r to %d argument(s)", fn, len(args))
            extended_env = new_enclosed_environment(fn.env)
            for param, arg in zip(fn.parameters, args):
                extended_env.set(param.value, arg)
            result = self.eval_block_statement(fn.body, extended_env)
            if isinstance(result, ReturnValue):
                return result.value
            return NULL if result is None else result
        if isinstance(fn, Builtin):
            return fn.fn(*args)
        return new_error(f"not a function: {fn.type()}")

    def eval_index_expression(self, node: IndexExpression, env: Environment) -> Object:
        left = self._expr(node.left, env)
        if is_error(left):
            return left
        index = self._expr(node.index, env)
        if is_error(index):
            return index
        return self.eval_index(left, index)

    def eval_index(self, left: Object, index: Object) -> Object:
        if isinstance(left, Array) and isinstance(index, Integer):
            if 0 <= index.value < len(left.elements):
                return left.elements[index.value]
            return NULL
        if isinstance(left, Hash):
            if not isinstance(index, Hashable):
                return new_error(f"unusable as hash key: {index.type()}")
            pair = left.pairs.get(index.hash_key())
            return NULL if pair is None else pair.value
        return new_error(f"index operator not supported: {left.type()}")


_default_evaluator = Evaluator()


def evaluate(node: Node, env: Environment) -> Object | None:
    """Evaluate `node` in `env` with the shared, stateless evaluator."""
    return _default_evaluator.evaluate(node, env)


__all__ = ["Evaluator", "evaluate", "trunc_div", "wrap_int64"]
