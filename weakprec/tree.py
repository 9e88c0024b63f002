import dataclasses
import enum
import logging
import typing

from .grammar import Grammar, Production


tree_log = logging.getLogger("weakprec.tree")


@dataclasses.dataclass
class Tree:
    label: str
    children: list["Tree"] = dataclasses.field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def pre_order(self, visit: typing.Callable[["Tree"], typing.Any]):
        """Visit this node, then each child in order, recursively."""
        visit(self)
        for child in self.children:
            child.pre_order(visit)

    def reverse_preorder(self, visit: typing.Callable[["Tree"], typing.Any]):
        """Visit this node, then each child from last to first, recursively.

        This is a pre-order walk of the mirrored tree. The children themselves
        are left in their original order.
        """
        visit(self)
        for child in reversed(self.children):
            child.reverse_preorder(visit)

    def post_order(self, visit: typing.Callable[["Tree"], typing.Any]):
        """The same walk as `reverse_preorder`.

        NOTE: Despite the name, this is *not* a post-order traversal: parents
        are visited before their children. Existing callers depend on this
        order, so it stays under this name.
        """
        self.reverse_preorder(visit)

    def leaves(self) -> list[str]:
        """The labels of the leaves, left to right.

        A nonterminal that was expanded by an epsilon production has no
        children, so it counts as a leaf here too.
        """
        result: list[str] = []

        def collect(node: "Tree"):
            if node.is_leaf:
                result.append(node.label)

        self.pre_order(collect)
        return result


class Orientation(enum.Enum):
    """Which way a derivation was written down.

    In a LEFT derivation, the productions for the nonterminals in a body
    appear left to right; in a RIGHT derivation they appear right to left.
    The parser produces RIGHT derivations.
    """

    LEFT = "left"
    RIGHT = "right"


class _DerivationCursor:
    productions: typing.Sequence[Production]
    index: int

    def __init__(self, productions: typing.Sequence[Production]):
        self.productions = productions
        self.index = 0

    def next(self) -> Production | None:
        if self.index >= len(self.productions):
            return None
        production = self.productions[self.index]
        self.index += 1
        return production


def build_tree(
    derivation: typing.Iterable[Production],
    grammar: Grammar,
    orientation: Orientation,
) -> Tree | None:
    """Rebuild the syntax tree for a derivation.

    The first production is the root. Every nonterminal in its body is
    expanded by the next unused production, in body order for
    Orientation.LEFT and in reverse body order for Orientation.RIGHT; either
    way the children end up in body order.

    If the derivation runs out before every nonterminal has been expanded,
    those nonterminals are just left out of the tree. An empty derivation has
    no tree at all, and we return None.
    """
    cursor = _DerivationCursor(tuple(derivation))
    if orientation == Orientation.LEFT:
        return _build_left(cursor, grammar)
    else:
        return _build_right(cursor, grammar)


def _build_left(cursor: _DerivationCursor, grammar: Grammar) -> Tree | None:
    production = cursor.next()
    if production is None:
        return None

    node = Tree(production.head)
    for symbol in production.body:
        if not grammar.is_nonterminal(symbol):
            node.children.append(Tree(symbol))
            continue

        child = _build_left(cursor, grammar)
        if child is not None:
            node.children.append(child)
        else:
            tree_log.debug("Derivation ended before %s in %s", symbol, production)

    return node


def _build_right(cursor: _DerivationCursor, grammar: Grammar) -> Tree | None:
    production = cursor.next()
    if production is None:
        return None

    node = Tree(production.head)
    for symbol in reversed(production.body):
        if not grammar.is_nonterminal(symbol):
            node.children.insert(0, Tree(symbol))
            continue

        child = _build_right(cursor, grammar)
        if child is not None:
            node.children.insert(0, child)
        else:
            tree_log.debug("Derivation ended before %s in %s", symbol, production)

    return node
