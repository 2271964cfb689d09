"""
Abstract Syntax Tree (AST) node definitions for Dicenic scripts.

The tree is the contract between the front-end (lexer + parser) and the
interpreter. Trees built by hand or by another front-end work as long as
they use these node classes.

Node kinds:
- Statements: Program, Block, IfStatement, WhileStatement, ExpressionStatement
- Expressions: NumberLiteral, StringLiteral, DiceLiteral, Identifier,
  SpecialVariable, BinaryOp, UnaryOp, LogicalOp, TernaryOp, Assignment,
  Grouping
"""

from dataclasses import dataclass, field
from typing import Optional, List
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode:
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def children(self) -> List["AstNode"]:
        """Direct child nodes, in evaluation order."""
        result = []
        for name, value in self.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                result.append(value)
            elif isinstance(value, list):
                result.extend(item for item in value if isinstance(item, AstNode))
        return result


@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class NumberLiteral(Expression):
    """A numeric literal (e.g., 42, 3.5)."""
    value: float


@dataclass
class StringLiteral(Expression):
    """A string literal.

    `raw` is the text between the quotes with escape sequences still
    encoded; the interpreter decodes them and expands `{$name}`
    placeholders.
    """
    raw: str


@dataclass
class DiceLiteral(Expression):
    """A dice literal (e.g., 3d6). Rolled every time it is evaluated."""
    expression: str


@dataclass
class Identifier(Expression):
    """A local variable reference."""
    name: str


@dataclass
class SpecialVariable(Expression):
    """A prefixed variable reference (e.g., $a力量 -> prefix 'a', name '力量')."""
    prefix: str
    name: str

    @property
    def full_name(self) -> str:
        return f"${self.prefix}{self.name}"


@dataclass
class BinaryOp(Expression):
    """Arithmetic, equality or relational operation (e.g., a + b, x >= 10)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (!x, -x, +x)."""
    operator: TokenType
    operand: Expression


@dataclass
class LogicalOp(Expression):
    """A chain of && or || operands, evaluated left to right with short circuit."""
    operator: TokenType  # AND or OR
    operands: List[Expression]


@dataclass
class TernaryOp(Expression):
    """Conditional expression (cond ? a : b)."""
    condition: Expression
    true_branch: Expression
    false_branch: Expression


@dataclass
class Assignment(Expression):
    """Assignment or compound assignment (x = 1, $a力量 += 2)."""
    target: Expression  # Identifier or SpecialVariable
    operator: TokenType
    value: Expression


@dataclass
class Grouping(Expression):
    """A parenthesized expression."""
    expression: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass
class Block(Statement):
    """A brace-delimited block. Blocks do not open a new scope."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class IfStatement(Statement):
    """An if statement.

    Syntax:
        if (condition) { ... } else if (other) { ... } else { ... }

    `else if` is an IfStatement in the else branch.
    """
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    """A while loop (e.g., while (hp > 0) { ... })."""
    condition: Expression
    body: Statement


@dataclass
class Program(AstNode):
    """A complete script."""
    statements: List[Statement] = field(default_factory=list)


# =============================================================================
# Debug Helpers
# =============================================================================

def format_ast(node: AstNode, indent: int = 0) -> str:
    """Render an AST as an indented outline."""
    pad = "  " * indent
    lines = [f"{pad}{node.__class__.__name__}"]
    for name, value in node.__dict__.items():
        if name == "span":
            continue
        if isinstance(value, AstNode):
            lines.append(f"{pad}  {name}:")
            lines.append(format_ast(value, indent + 2))
        elif isinstance(value, list):
            lines.append(f"{pad}  {name}: [")
            for item in value:
                if isinstance(item, AstNode):
                    lines.append(format_ast(item, indent + 2))
                else:
                    lines.append(f"{pad}    {item!r}")
            lines.append(f"{pad}  ]")
        elif isinstance(value, TokenType):
            lines.append(f"{pad}  {name}: {value.name}")
        else:
            lines.append(f"{pad}  {name}: {value!r}")
    return "\n".join(lines)


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
