from .grammar import Grammar, GrammarError, Production
from .precedence import (
    Action,
    PrecedenceTable,
    Relation,
    RelationKind,
    build_table,
    compute_dir,
    compute_esq,
    derive_relations,
    find_conflicts,
)
from .runtime import ConfigError, InputTypeError, ParseError, Parser, PrecedenceError
from .tree import Orientation, Tree, build_tree
