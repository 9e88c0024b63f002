"""Grammars for the weak precedence parser.

The parser core only needs a handful of things from a grammar: which symbols
are nonterminals, which symbol stands for "nothing", the terminals and
nonterminals in a stable order, and the productions themselves. This module
provides a small, flat representation of exactly that.

Productions are given in the same dense form that the table generators have
always used:

    grammar_simple = Grammar([
        ("E", ["E", "+", "T"]),
        ("E", ["T"]),
        ("T", ["(", "E", ")"]),
        ("T", ["id"]),
    ])

or, if you prefer to write them out by hand, in textbook notation:

    grammar_simple = Grammar.from_text('''
        E -> E + T | T
        T -> ( E ) | id
    ''')

Use an empty list (or the empty symbol, `ε` by default) to indicate an epsilon
production:

    ("O", []),
"""

import dataclasses
import typing


class GrammarError(ValueError):
    pass


@dataclasses.dataclass(frozen=True)
class Production:
    """A single rewrite rule, `head -> body`.

    The body is a tuple of symbols, and may be empty. Productions are
    immutable; the parser only ever reads them.
    """

    head: str
    body: typing.Tuple[str, ...]

    @property
    def key(self) -> typing.Tuple[str, ...]:
        """The key used to match this production against the top of the parse
        stack. Two productions have the same key only if they have exactly the
        same body.
        """
        return self.body

    @property
    def is_epsilon(self) -> bool:
        return len(self.body) == 0

    def __str__(self) -> str:
        return "{head} -> {body}".format(
            head=self.head,
            body=" ".join(self.body) if self.body else "ε",
        )


class Grammar:
    """A context-free grammar: a list of productions plus a classification of
    every symbol.

    The nonterminals are exactly the heads of the productions, in the order
    in which they first appear. If `terminals` is not provided then every
    other symbol in a body is a terminal, again in order of first appearance.
    If it is provided, then any body symbol that is neither a nonterminal nor
    a declared terminal is an error.

    `empty` is the symbol that stands for the empty string. It never shows up
    in a production body once the grammar is built; a body consisting solely
    of it is stored as an empty body.
    """

    empty: str
    _productions: list[Production]
    _by_head: dict[str, list[Production]]
    _terminals: list[str]
    _nonterminals: list[str]

    def __init__(
        self,
        productions: typing.Iterable[typing.Tuple[str, typing.Iterable[str]]],
        terminals: typing.Iterable[str] | None = None,
        empty: str = "ε",
    ):
        if not isinstance(empty, str) or len(empty) == 0:
            raise GrammarError("The empty symbol must be a non-empty string")
        self.empty = empty

        self._productions = []
        self._by_head = {}
        for head, body in productions:
            if not isinstance(head, str) or len(head) == 0:
                raise GrammarError(f"Production heads must be non-empty strings, not {head!r}")
            if head == empty:
                raise GrammarError(f"The empty symbol {empty!r} cannot be a production head")

            body = tuple(body)
            for symbol in body:
                if not isinstance(symbol, str) or len(symbol) == 0:
                    raise GrammarError(
                        f"Symbols must be non-empty strings, not {symbol!r} (in {head})"
                    )

            # 'A -> ε' is just another way of spelling an empty body. The empty
            # symbol anywhere else doesn't mean anything.
            if body == (empty,):
                body = ()
            elif empty in body:
                raise GrammarError(
                    f"The empty symbol {empty!r} must appear alone in a production body"
                )

            production = Production(head, body)
            self._productions.append(production)
            self._by_head.setdefault(head, []).append(production)

        if len(self._productions) == 0:
            raise GrammarError("A grammar needs at least one production")

        # We count on python dictionaries retaining the insertion order here.
        self._nonterminals = list(self._by_head.keys())

        if terminals is None:
            seen: dict[str, None] = {}
            for production in self._productions:
                for symbol in production.body:
                    if symbol not in self._by_head:
                        seen[symbol] = None
            self._terminals = list(seen.keys())
        else:
            self._terminals = list(dict.fromkeys(t for t in terminals if t != empty))

            conflicting = [t for t in self._terminals if t in self._by_head]
            if conflicting:
                raise GrammarError(
                    "{symbols} cannot be both a terminal and a nonterminal".format(
                        symbols=" or ".join(conflicting)
                    )
                )

            known = set(self._terminals)
            for production in self._productions:
                for symbol in production.body:
                    if symbol not in self._by_head and symbol not in known:
                        raise GrammarError(
                            f"Unknown symbol {symbol!r} in production {production}"
                        )

    @classmethod
    def from_text(cls, text: str, empty: str = "ε") -> "Grammar":
        """Build a grammar from textbook notation.

        Each non-blank line is `HEAD -> ALT | ALT | ...`, where every
        alternative is a whitespace-separated list of symbols. An empty
        alternative, or one that is just the empty symbol, is an epsilon
        production. Anything after a `#` is a comment.
        """
        productions: list[typing.Tuple[str, list[str]]] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.split("#", 1)[0].strip()
            if not line:
                continue

            head, arrow, rest = line.partition("->")
            head = head.strip()
            if not arrow or not head or len(head.split()) != 1:
                raise GrammarError(f"Line {lineno}: expected 'HEAD -> BODY', got {line!r}")

            for alternative in rest.split("|"):
                productions.append((head, alternative.split()))

        return cls(productions, empty=empty)

    @property
    def productions(self) -> list[Production]:
        return list(self._productions)

    @property
    def terminals(self) -> list[str]:
        return list(self._terminals)

    @property
    def nonterminals(self) -> list[str]:
        return list(self._nonterminals)

    @property
    def symbols(self) -> list[str]:
        return self._nonterminals + self._terminals

    def productions_for(self, head: str) -> list[Production]:
        return list(self._by_head.get(head, ()))

    def is_nonterminal(self, symbol: str) -> bool:
        return symbol in self._by_head

    def is_terminal(self, symbol: str) -> bool:
        return symbol in self._terminals

    def is_empty(self, symbol: str) -> bool:
        return symbol == self.empty

    def __repr__(self) -> str:
        return "Grammar([{productions}])".format(
            productions=", ".join(repr((p.head, list(p.body))) for p in self._productions)
        )
