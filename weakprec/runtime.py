import logging
import typing

from . import precedence
from .grammar import Grammar, Production
from .precedence import Action, Relation, RelationKind
from .tree import Orientation, Tree, build_tree


class PrecedenceError(Exception):
    pass


class ConfigError(PrecedenceError, ValueError):
    """The grammar, start symbol, and end marker don't make sense together."""


class InputTypeError(PrecedenceError, TypeError):
    """The input to parse was neither a string nor a list of symbols."""


class ParseError(PrecedenceError):
    """The input is not in the language.

    `position` is the number of input symbols that had been consumed when the
    parser gave up, and `symbol` is the lookahead symbol it was looking at.
    """

    position: int
    symbol: str

    def __init__(self, position: int, symbol: str, message: str | None = None):
        self.position = position
        self.symbol = symbol
        if message is None:
            message = f"Syntax Error: Unexpected {symbol!r} at position {position}"
        super().__init__(message)


action_log = logging.getLogger("weakprec.action")


class Parser:
    """A weak precedence parser for a grammar.

    Building a Parser computes the precedence relations and the shift/reduce
    table for the grammar, which are then only ever read. Every call to
    `parse` has its own stack and input, so one Parser can be used for as many
    parses as you like, from as many threads as you like.
    """

    grammar: Grammar
    start: str
    end_marker: str
    relations: frozenset[Relation]
    table: precedence.PrecedenceTable

    # Production bodies, mapped to the first production (in declaration order)
    # with that body.
    _by_body: dict[typing.Tuple[str, ...], Production]
    _longest_body: int
    _epsilons: list[Production]
    _max_steps: int | None

    def __init__(
        self,
        grammar: Grammar,
        start: str,
        end_marker: str = "$",
        max_steps: int | None = None,
    ):
        """Initialize the parser with the specified grammar, start symbol, and
        end-of-input marker.

        The start symbol has to be a nonterminal of the grammar. The end marker
        has to be something that is *not* in the grammar at all: not a
        nonterminal, not a terminal, and not the empty symbol.

        max_steps bounds the number of shifts and reductions in a single parse.
        If it's None then a limit is derived from the length of the input.
        """
        if not isinstance(grammar, Grammar):
            raise ConfigError(f"Expected a Grammar, not {type(grammar).__name__}")
        if not isinstance(start, str) or len(start) == 0:
            raise ConfigError("The start symbol must be a non-empty string")
        if not grammar.is_nonterminal(start):
            raise ConfigError(f"The start symbol {start!r} is not a nonterminal of the grammar")
        if not isinstance(end_marker, str) or len(end_marker) == 0:
            raise ConfigError("The end marker must be a non-empty string")
        if grammar.is_nonterminal(end_marker):
            raise ConfigError(f"The end marker {end_marker!r} is a nonterminal of the grammar")
        if grammar.is_terminal(end_marker) or grammar.is_empty(end_marker):
            raise ConfigError(f"The end marker {end_marker!r} is already a symbol of the grammar")
        if max_steps is not None and max_steps <= 0:
            raise ConfigError("max_steps must be positive")

        self.grammar = grammar
        self.start = start
        self.end_marker = end_marker
        self._max_steps = max_steps

        esq = precedence.compute_esq(grammar)
        dir_ = precedence.compute_dir(grammar)
        self.relations = precedence.derive_relations(grammar, start, end_marker, esq, dir_)
        self.table = precedence.build_table(grammar, self.relations, end_marker)

        self._by_body = {}
        for production in grammar.productions:
            if not production.is_epsilon:
                self._by_body.setdefault(production.key, production)
        self._longest_body = max((len(key) for key in self._by_body), default=0)
        self._epsilons = [p for p in grammar.productions if p.is_epsilon]

    def parse(self, input: str | typing.Sequence[str]) -> list[Production]:
        """Parse the input and return the productions that derive it.

        The input is either a string, in which case every character is one
        symbol, or a list (or tuple) of symbols. Don't stick an end marker on
        the end, I'll do that for you.

        The productions come back outermost first: the first production in the
        list is the one for the start symbol, and the rest are the reductions
        in the reverse of the order they were made, which is a rightmost
        derivation. Feed it to `build_tree` with Orientation.RIGHT to get the
        tree back.

        Raises ParseError if the input isn't in the language.
        """
        if isinstance(input, str):
            symbols = list(input)
        elif isinstance(input, (list, tuple)):
            symbols = list(input)
        else:
            raise InputTypeError(
                f"Expected a string or a list of symbols, not {type(input).__name__}"
            )

        for index, symbol in enumerate(symbols):
            if not isinstance(symbol, str) or not symbol:
                raise InputTypeError(
                    f"Expected every symbol to be a non-empty string, not {symbol!r} "
                    f"(at position {index})"
                )
            if symbol == self.end_marker:
                raise ParseError(
                    index,
                    symbol,
                    f"Syntax Error: The end marker {symbol!r} cannot appear in the input "
                    f"(at position {index})",
                )

        input_symbols = symbols + [self.end_marker]
        input_index = 0

        stack: list[str] = [self.end_marker]
        result: list[Production] = []

        max_steps = self._max_steps
        if max_steps is None:
            max_steps = (len(input_symbols) + 1) * (len(self.grammar.productions) + 1) * 4
        steps = 0

        al = action_log
        while len(stack) > 2 or not (
            input_symbols[input_index] == self.end_marker and stack[-1] == self.start
        ):
            current = input_symbols[input_index]
            top = stack[-1]

            steps += 1
            if steps > max_steps:
                raise ParseError(
                    input_index,
                    current,
                    f"Syntax Error: Gave up at position {input_index} after {max_steps} steps",
                )

            action = self.table.action(top, current)
            if al.isEnabledFor(logging.INFO):
                al.info(
                    "{stack: <30} {input: <15} {action: <5}".format(
                        stack=repr(stack[-5:]),
                        input=current,
                        action=action.value,
                    )
                )

            match action:
                case Action.SHIFT:
                    stack.append(current)
                    input_index += 1

                case Action.REDUCE:
                    production = self._find_handle(stack)
                    if production is None:
                        raise ParseError(input_index, current)

                    del stack[-len(production.body) :]
                    stack.append(production.head)
                    result.insert(0, production)

                case _:
                    # There's no relation between the top of the stack and the
                    # lookahead, but there might be an empty nonterminal that
                    # fits between them.
                    production = self._find_epsilon(top, current)
                    if production is None:
                        raise ParseError(input_index, current)

                    if al.isEnabledFor(logging.INFO):
                        al.info("inserting empty %s before %r", production.head, current)
                    stack.append(production.head)
                    result.insert(0, production)

        return result

    def parse_tree(self, input: str | typing.Sequence[str]) -> Tree:
        """Parse the input and build the syntax tree for it."""
        tree = build_tree(self.parse(input), self.grammar, Orientation.RIGHT)
        assert tree is not None
        return tree

    def _find_handle(self, stack: list[str]) -> Production | None:
        """Find the production to reduce by, trying the longest possible body
        first.

        The bottom of the stack is always the end marker, which can't be part
        of any body, so we never look at it.
        """
        longest = min(len(stack) - 1, self._longest_body)
        for length in range(longest, 0, -1):
            key = tuple(stack[-length:])
            production = self._by_body.get(key)
            if production is not None:
                return production

        return None

    def _find_epsilon(self, top: str, current: str) -> Production | None:
        """Find an epsilon production whose head can be pushed between `top`
        and `current`.

        The head has to follow the top of the stack (`top < head` or
        `top = head`) and it has to know what to do with the lookahead, either
        directly or through a run of further epsilon heads that follow it. The
        one special case is a nullable start symbol on an empty stack.
        """
        for production in self._epsilons:
            head = production.head
            if top == self.end_marker and head == self.start:
                if current == self.end_marker or self._can_continue(head, current, {head}):
                    return production

            if not self._follows(top, head):
                continue

            if self._can_continue(head, current, {head}):
                return production

        return None

    def _follows(self, top: str, head: str) -> bool:
        return (
            Relation(top, RelationKind.LESS, head) in self.relations
            or Relation(top, RelationKind.EQUAL, head) in self.relations
        )

    def _can_continue(self, head: str, current: str, seen: set[str]) -> bool:
        if self.table.action(head, current) != Action.UNDEFINED:
            return True

        for production in self._epsilons:
            following = production.head
            if following in seen or not self._follows(head, following):
                continue
            if self._can_continue(following, current, seen | {following}):
                return True

        return False
