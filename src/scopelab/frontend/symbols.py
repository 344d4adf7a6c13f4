import re
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files
from typing import Any, cast

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

RESERVED_WORDS = frozenset(
    {
        "if",
        "else",
        "repeat",
        "while",
        "function",
        "for",
        "in",
        "next",
        "break",
        "TRUE",
        "FALSE",
        "NULL",
        "Inf",
        "NaN",
        "NA",
    }
)

_escape_sequence = re.compile(r"\\(.)", re.DOTALL)


class SymbolSyntaxError(ValueError):
    """Raised when text is not a valid reference to a binding."""


@dataclass(frozen=True, slots=True)
class Symbol:
    name: str
    namespace: str | None = None
    internal: bool = False

    @property
    def qualified(self) -> bool:
        return self.namespace is not None

    def __str__(self) -> str:
        if self.namespace is None:
            return format_symbol(self.name)
        separator = ":::" if self.internal else "::"
        return f"{format_symbol(self.namespace)}{separator}{format_symbol(self.name)}"


class SymbolTransformer(Transformer[Token, object]):
    def local(self, children: list[object]) -> Symbol:
        [name] = children
        return Symbol(name=self._as_text(name))

    def exported(self, children: list[object]) -> Symbol:
        [namespace, name] = children
        return Symbol(name=self._as_text(name), namespace=self._as_text(namespace))

    def internal(self, children: list[object]) -> Symbol:
        [namespace, name] = children
        return Symbol(
            name=self._as_text(name),
            namespace=self._as_text(namespace),
            internal=True,
        )

    def plain(self, children: list[object]) -> str:
        [token] = children
        assert isinstance(token, Token)
        return str(token)

    def quoted(self, children: list[object]) -> str:
        [token] = children
        assert isinstance(token, Token)
        return _escape_sequence.sub(r"\1", str(token)[1:-1])

    def _as_text(self, value: object) -> str:
        assert isinstance(value, str)
        return value


def _load_grammar_text() -> str:
    grammar_file = files("scopelab.frontend").joinpath("grammar.lark")
    return grammar_file.read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def get_parser() -> Lark:
    grammar = _load_grammar_text()
    return Lark(grammar, start="start", parser="lalr")


def parse_symbol(text: str) -> Symbol:
    parser: Any = get_parser()
    try:
        tree = parser.parse(text)
    except LarkError as error:
        raise SymbolSyntaxError(f"invalid symbol {text!r}") from error
    symbol = SymbolTransformer().transform(tree)
    assert isinstance(symbol, Symbol)
    return cast(Symbol, symbol)


def is_syntactic(name: str) -> bool:
    if name in RESERVED_WORDS:
        return False
    try:
        return parse_symbol(name) == Symbol(name)
    except SymbolSyntaxError:
        return False


def format_symbol(name: str) -> str:
    """Render `name` so that `parse_symbol` reads it back unchanged."""
    if is_syntactic(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"
