"""
Defines the abstract syntax tree (AST) node structure for the Toy language.

The tree is a closed family of node classes split into two capability sets:

    Statement:
        Program (root), LetStatement, ReturnStatement, ExpressionStatement,
        BlockStatement
    Expression:
        Identifier, IntegerLiteral, BooleanLiteral, StringLiteral, ArrayLiteral,
        HashLiteral, PrefixExpression, InfixExpression, IfExpression,
        FunctionLiteral, CallExpression, IndexExpression

Each node tracks:
    kind (str): Stable snake_case name of the variant, used for evaluator dispatch.
    token (Token): The token the node was built from, for diagnostics.

Every node renders a canonical textual form through `str(node)`. The form is fully
parenthesized and re-parseable: parsing `str(node)` yields a tree with the same
canonical form. Nodes also convert to plain dictionaries with `to_dict()`.

Nodes are only built by the parser and never mutated afterwards.

Example:
    >>> str(parse("a + b * c")[0])
    '(a + (b * c))'
"""

from typing import Any, TypedDict

from toy.toy_lexer import Token


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of a node used for serialization.

    Fields:
        kind (str): The node variant (e.g., "let_statement", "infix_expression").
        value (Any): The scalar payload (name, operator, literal), if any.
        line (int): Line number of the defining token.
        col (int): Column number of the defining token.
        children (list[ASTDict]): Child nodes in source order.
    """

    kind: str
    value: Any
    line: int
    col: int
    children: list["ASTDict"]


def quote_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class Node:
    """Base class of every AST node.

    Subclasses declare `kind` and list their semantic fields in `_fields`; equality,
    `__repr__` and `to_dict()` are derived from those fields. The defining token is
    deliberately excluded from equality so trees built from different sources compare
    structurally.
    """

    kind = "node"
    _fields: tuple[str, ...] = ()

    def __init__(self, token: Token) -> None:
        self.token = token

    def token_literal(self) -> str:
        return self.token.value

    def children(self) -> list["Node"]:
        out: list[Node] = []
        for name in self._fields:
            val = getattr(self, name)
            if isinstance(val, Node):
                out.append(val)
            elif isinstance(val, list):
                for item in val:
                    if isinstance(item, tuple):
                        out.extend(n for n in item if isinstance(n, Node))
                    elif isinstance(item, Node):
                        out.append(item)
        return out

    def scalar(self) -> Any:
        return None

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return False
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "value": self.scalar(),
            "line": self.token.line,
            "col": self.token.col,
            "children": [c.to_dict() for c in self.children()],
        }


class Statement(Node):
    pass


class Expression(Node):
    pass


class Program(Node):
    """Root of the tree: the ordered statements of a whole source text."""

    kind = "program"
    _fields = ("statements",)

    def __init__(self, statements: list[Statement] | None = None) -> None:
        super().__init__(Token("PROGRAM", ""))
        self.statements: list[Statement] = statements or []

    def token_literal(self) -> str:
        return self.statements[0].token_literal() if self.statements else ""

    def to_dict(self) -> ASTDict:
        d = super().to_dict()
        if self.statements:
            d["line"] = self.statements[0].token.line
            d["col"] = self.statements[0].token.col
        return d

    def __str__(self) -> str:
        return "; ".join(str(s) for s in self.statements)


class Identifier(Expression):
    kind = "identifier"
    _fields = ("value",)

    def __init__(self, token: Token, value: str) -> None:
        super().__init__(token)
        self.value = value

    def scalar(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return self.value


class LetStatement(Statement):
    kind = "let_statement"
    _fields = ("name", "value")

    def __init__(self, token: Token, name: Identifier, value: Expression) -> None:
        super().__init__(token)
        self.name = name
        self.value = value

    def scalar(self) -> Any:
        return self.name.value

    def __str__(self) -> str:
        return f"let {self.name} = {self.value}"


class ReturnStatement(Statement):
    kind = "return_statement"
    _fields = ("return_value",)

    def __init__(self, token: Token, return_value: Expression | None = None) -> None:
        super().__init__(token)
        self.return_value = return_value

    def __str__(self) -> str:
        if self.return_value is None:
            return "return"
        return f"return {self.return_value}"


class ExpressionStatement(Statement):
    kind = "expression_statement"
    _fields = ("expression",)

    def __init__(self, token: Token, expression: Expression) -> None:
        super().__init__(token)
        self.expression = expression

    def __str__(self) -> str:
        return str(self.expression)


class BlockStatement(Statement):
    kind = "block_statement"
    _fields = ("statements",)

    def __init__(self, token: Token, statements: list[Statement] | None = None) -> None:
        super().__init__(token)
        self.statements: list[Statement] = statements or []

    def __str__(self) -> str:
        if not self.statements:
            return "{ }"
        return "{ " + "; ".join(str(s) for s in self.statements) + " }"


class IntegerLiteral(Expression):
    kind = "integer_literal"
    _fields = ("value",)

    def __init__(self, token: Token, value: int) -> None:
        super().__init__(token)
        self.value = value

    def scalar(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class BooleanLiteral(Expression):
    kind = "boolean_literal"
    _fields = ("value",)

    def __init__(self, token: Token, value: bool) -> None:
        super().__init__(token)
        self.value = value

    def scalar(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return "true" if self.value else "false"


class StringLiteral(Expression):
    kind = "string_literal"
    _fields = ("value",)

    def __init__(self, token: Token, value: str) -> None:
        super().__init__(token)
        self.value = value

    def scalar(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return quote_string(self.value)


class ArrayLiteral(Expression):
    kind = "array_literal"
    _fields = ("elements",)

    def __init__(self, token: Token, elements: list[Expression] | None = None) -> None:
        super().__init__(token)
        self.elements: list[Expression] = elements or []

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


class HashLiteral(Expression):
    """A `{key: value}` literal.

    Pairs are kept as an ordered list so re-serialization follows source order.
    """

    kind = "hash_literal"
    _fields = ("pairs",)

    def __init__(
        self, token: Token, pairs: list[tuple[Expression, Expression]] | None = None
    ) -> None:
        super().__init__(token)
        self.pairs: list[tuple[Expression, Expression]] = pairs or []

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


class PrefixExpression(Expression):
    kind = "prefix_expression"
    _fields = ("operator", "right")

    def __init__(self, token: Token, operator: str, right: Expression) -> None:
        super().__init__(token)
        self.operator = operator
        self.right = right

    def scalar(self) -> Any:
        return self.operator

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


class InfixExpression(Expression):
    kind = "infix_expression"
    _fields = ("left", "operator", "right")

    def __init__(
        self, token: Token, left: Expression, operator: str, right: Expression
    ) -> None:
        super().__init__(token)
        self.left = left
        self.operator = operator
        self.right = right

    def scalar(self) -> Any:
        return self.operator

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


class IfExpression(Expression):
    kind = "if_expression"
    _fields = ("condition", "consequence", "alternative")

    def __init__(
        self,
        token: Token,
        condition: Expression,
        consequence: BlockStatement,
        alternative: BlockStatement | None = None,
    ) -> None:
        super().__init__(token)
        self.condition = condition
        self.consequence = consequence
        self.alternative = alternative

    def __str__(self) -> str:
        out = f"if ({self.condition}) {self.consequence}"
        if self.alternative is not None:
            out += f" else {self.alternative}"
        return out


class FunctionLiteral(Expression):
    kind = "function_literal"
    _fields = ("parameters", "body")

    def __init__(
        self, token: Token, parameters: list[Identifier], body: BlockStatement
    ) -> None:
        super().__init__(token)
        self.parameters = parameters
        self.body = body

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


class CallExpression(Expression):
    kind = "call_expression"
    _fields = ("function", "arguments")

    def __init__(
        self, token: Token, function: Expression, arguments: list[Expression]
    ) -> None:
        super().__init__(token)
        self.function = function
        self.arguments = arguments

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


class IndexExpression(Expression):
    kind = "index_expression"
    _fields = ("left", "index")

    def __init__(self, token: Token, left: Expression, index: Expression) -> None:
        super().__init__(token)
        self.left = left
        self.index = index

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


__all__ = [
    "ASTDict",
    "ArrayLiteral",
    "BlockStatement",
    "BooleanLiteral",
    "CallExpression",
    "Expression",
    "ExpressionStatement",
    "FunctionLiteral",
    "HashLiteral",
    "Identifier",
    "IfExpression",
    "IndexExpression",
    "InfixExpression",
    "IntegerLiteral",
    "LetStatement",
    "Node",
    "PrefixExpression",
    "Program",
    "ReturnStatement",
    "Statement",
    "StringLiteral",
]
