"""Generate weak precedence tables.

A weak precedence parser is a shift/reduce machine that decides what to do by
looking only at the symbol on top of its stack and the next input symbol.
Between those two symbols there is (hopefully) at most one Wirth-Weber
relation:

    X < Y   X yields precedence to Y: Y starts something new. Shift.
    X = Y   X and Y are adjacent in some production body. Shift.
    X > Y   X ends a handle that Y follows. Reduce.

Unlike simple precedence we don't care about the difference between `<` and
`=`, both mean "shift". Finding where the handle *starts* is done at parse
time by matching the stack against production bodies, longest first. (See
runtime.py.)

The relations come from two closure sets per nonterminal:

    ESQ(N) is every symbol that can appear at the far left of something
    derived from N.

    DIR(N) is the mirror image: every symbol that can appear at the far right.

and from looking at which symbols sit next to each other in the productions.
None of this depends on any particular input, so we compute it all once per
grammar and then share the table between as many parses as you like.
"""

import dataclasses
import enum
import logging
import typing

from .grammar import Grammar


table_log = logging.getLogger("weakprec.table")


###############################################################################
# ESQ and DIR
###############################################################################
def update_changed(items: set[str], other: set[str]) -> bool:
    """Merge the `other` set into the `items` set, and return True if this
    changed the items set.
    """
    old_len = len(items)
    items.update(other)
    return old_len != len(items)


def _edge_closure(grammar: Grammar, edge: typing.Callable[[tuple[str, ...]], str]):
    """Compute ESQ or DIR, depending on which end of the body `edge` picks.

    For a production N -> X ..., X goes in the set for N, and if X is a
    nonterminal then everything in X's set does too. The one exception is
    when X is N itself: that adds nothing we don't already have, so we skip
    it.

    The obvious way to write this is recursively, but that recursion never
    ends when two nonterminals start with each other (A -> B x, B -> A y).
    Iterating to a fixed point gets the same sets without that problem.
    """
    sets: dict[str, set[str]] = {nt: set() for nt in grammar.nonterminals}

    changed = True
    while changed:
        changed = False
        for production in grammar.productions:
            if len(production.body) == 0:
                continue

            symbol = edge(production.body)
            if symbol == production.head:
                continue

            result = sets[production.head]
            if symbol not in result:
                result.add(symbol)
                changed = True

            if grammar.is_nonterminal(symbol):
                changed = update_changed(result, sets[symbol]) or changed

    return sets


def compute_esq(grammar: Grammar) -> dict[str, set[str]]:
    """Compute ESQ for every nonterminal in the grammar.

    Consider this grammar:

        [
          ('E', ['E', '+', 'T']),
          ('E', ['T']),
          ('T', ['(', 'E', ')']),
          ('T', ['id']),
        ]

    ESQ['T'] is ('(', 'id'): both productions start with a terminal.

    ESQ['E'] is ('T', '(', 'id'). The first production starts with 'E' itself
    and contributes nothing; the second starts with 'T', so 'T' is in the set
    along with all of ESQ['T'].
    """
    return _edge_closure(grammar, lambda body: body[0])


def compute_dir(grammar: Grammar) -> dict[str, set[str]]:
    """Compute DIR for every nonterminal in the grammar.

    This is exactly like ESQ, except that it looks at the last symbol of each
    production instead of the first one.
    """
    return _edge_closure(grammar, lambda body: body[-1])


###############################################################################
# Wirth-Weber relations
###############################################################################
class RelationKind(enum.Enum):
    LESS = "<"
    EQUAL = "="
    GREATER = ">"


class Relation(typing.NamedTuple):
    left: str
    kind: RelationKind
    right: str

    def __str__(self) -> str:
        return f"{self.left} {self.kind.value} {self.right}"


def derive_relations(
    grammar: Grammar,
    start: str,
    end_marker: str,
    esq: dict[str, set[str]] | None = None,
    dir_: dict[str, set[str]] | None = None,
) -> frozenset[Relation]:
    """Derive the Wirth-Weber relations for the grammar, with the start symbol
    bracketed by `end_marker` on both sides.

    If you already have ESQ and DIR lying around you can pass them in,
    otherwise they are computed here.
    """
    if not grammar.is_nonterminal(start):
        raise ValueError(f"The start symbol {start!r} is not a nonterminal of the grammar")

    if esq is None:
        esq = compute_esq(grammar)
    if dir_ is None:
        dir_ = compute_dir(grammar)

    relations: set[Relation] = set()

    # X = Y whenever Y comes right after X in some production.
    adjacent: set[Relation] = set()
    for production in grammar.productions:
        body = production.body
        for left, right in zip(body, body[1:]):
            adjacent.add(Relation(left, RelationKind.EQUAL, right))
    relations.update(adjacent)

    for left, _, right in adjacent:
        # X = N means that X comes before anything N can start with.
        if grammar.is_nonterminal(right):
            for s in esq[right]:
                relations.add(Relation(left, RelationKind.LESS, s))

        # N = Y means that anything N can end with has to be reduced before
        # whatever Y starts with.
        if grammar.is_nonterminal(left):
            if grammar.is_nonterminal(right):
                for sd in dir_[left]:
                    for se in esq[right]:
                        relations.add(Relation(sd, RelationKind.GREATER, se))
            else:
                for sd in dir_[left]:
                    relations.add(Relation(sd, RelationKind.GREATER, right))

    # The whole input is `$ start $`, so the end marker yields to whatever the
    # start symbol begins with and whatever it ends with reduces before it.
    for s in esq[start]:
        relations.add(Relation(end_marker, RelationKind.LESS, s))
    for s in dir_[start]:
        relations.add(Relation(s, RelationKind.GREATER, end_marker))

    return frozenset(relations)


def find_conflicts(relations: typing.Iterable[Relation]) -> set[typing.Tuple[str, str]]:
    """Return every (left, right) pair that is both a shift relation (`<` or
    `=`) and a reduce relation (`>`). A grammar with any of these is not a
    weak precedence grammar.
    """
    shifts = set()
    reduces = set()
    for left, kind, right in relations:
        if kind == RelationKind.GREATER:
            reduces.add((left, right))
        else:
            shifts.add((left, right))
    return shifts & reduces


###############################################################################
# Tables
###############################################################################
class Action(enum.Enum):
    SHIFT = "shift"
    REDUCE = "reduce"
    UNDEFINED = "undefined"


@dataclasses.dataclass(frozen=True)
class PrecedenceTable:
    """The shift/reduce table.

    Rows are every nonterminal, every terminal, and the end marker; columns
    are every terminal and the end marker. Every cell in that domain has an
    entry, even if it's just UNDEFINED. The table never changes after it is
    built, so it's fine to share it between parsers.
    """

    rows: typing.Tuple[str, ...]
    columns: typing.Tuple[str, ...]
    cells: typing.Mapping[typing.Tuple[str, str], Action]
    conflicts: frozenset[typing.Tuple[str, str]]

    def action(self, row: str, column: str) -> Action:
        """Look up the action for the given stack top and lookahead. Anything
        outside the table is UNDEFINED.
        """
        return self.cells.get((row, column), Action.UNDEFINED)


def build_table(
    grammar: Grammar,
    relations: typing.Iterable[Relation],
    end_marker: str,
) -> PrecedenceTable:
    """Build the shift/reduce table from a set of relations.

    A cell that has both a shift relation and a reduce relation is a real
    conflict, and the grammar isn't weak precedence. We don't fail in that
    case: the cell becomes SHIFT, and the pair is recorded in
    `PrecedenceTable.conflicts` (and logged) so that you can go find out why.
    """
    relations = frozenset(relations)

    columns = tuple(t for t in grammar.terminals if not grammar.is_empty(t)) + (end_marker,)
    rows = tuple(grammar.nonterminals) + columns

    cells: dict[typing.Tuple[str, str], Action] = {}
    for row in rows:
        for column in columns:
            if (
                Relation(row, RelationKind.LESS, column) in relations
                or Relation(row, RelationKind.EQUAL, column) in relations
            ):
                cells[(row, column)] = Action.SHIFT
            elif Relation(row, RelationKind.GREATER, column) in relations:
                cells[(row, column)] = Action.REDUCE
            else:
                cells[(row, column)] = Action.UNDEFINED

    conflicts = frozenset(pair for pair in find_conflicts(relations) if pair in cells)
    if conflicts:
        table_log.warning(
            "Grammar is not weak precedence; shifting on %d conflicting cell(s): %s",
            len(conflicts),
            ", ".join(f"({left}, {right})" for left, right in sorted(conflicts)),
        )

    table_log.debug(
        "Built precedence table: %d rows, %d columns, %d relations",
        len(rows),
        len(columns),
        len(relations),
    )

    return PrecedenceTable(rows=rows, columns=columns, cells=cells, conflicts=conflicts)
