from weakprec import Grammar, Orientation, Production, Tree, build_tree


def _tree(treeform) -> Tree:
    if isinstance(treeform, str):
        return Tree(treeform)
    else:
        return Tree(treeform[0], [_tree(x) for x in treeform[1:]])


def pair_grammar() -> Grammar:
    return Grammar(
        [
            ("S", ["A", "B"]),
            ("A", ["a"]),
            ("B", ["b"]),
        ]
    )


def test_traversals():
    tree = _tree(("S", ("A", "a", "x"), ("B", "b")))

    seen = []
    tree.pre_order(lambda node: seen.append(node.label))
    assert seen == ["S", "A", "a", "x", "B", "b"]

    seen = []
    tree.reverse_preorder(lambda node: seen.append(node.label))
    assert seen == ["S", "B", "b", "A", "x", "a"]

    seen = []
    tree.post_order(lambda node: seen.append(node.label))
    assert seen == ["S", "B", "b", "A", "x", "a"]


def test_reverse_preorder_leaves_children_alone():
    tree = _tree(("S", "a", "b", "c"))

    tree.reverse_preorder(lambda node: None)
    tree.post_order(lambda node: None)

    assert [child.label for child in tree.children] == ["a", "b", "c"]


def test_leaves():
    tree = _tree(("S", ("A", "a", "x"), ("B",), "b"))
    assert tree.leaves() == ["a", "x", "B", "b"]
    assert Tree("a").is_leaf


def test_left_derivation():
    G = pair_grammar()
    derivation = [
        Production("S", ("A", "B")),
        Production("A", ("a",)),
        Production("B", ("b",)),
    ]

    tree = build_tree(derivation, G, Orientation.LEFT)
    assert tree == _tree(("S", ("A", "a"), ("B", "b")))


def test_right_derivation():
    G = pair_grammar()
    derivation = [
        Production("S", ("A", "B")),
        Production("B", ("b",)),
        Production("A", ("a",)),
    ]

    tree = build_tree(derivation, G, Orientation.RIGHT)
    assert tree == _tree(("S", ("A", "a"), ("B", "b")))


def test_orientation_matters():
    """The orientation is not inferred: reading a right derivation as a left
    one puts the wrong subtrees under S."""
    G = pair_grammar()
    derivation = [
        Production("S", ("A", "B")),
        Production("B", ("b",)),
        Production("A", ("a",)),
    ]

    tree = build_tree(derivation, G, Orientation.LEFT)
    assert tree == _tree(("S", ("B", "b"), ("A", "a")))


def test_derivation_is_not_consumed():
    G = pair_grammar()
    derivation = [
        Production("S", ("A", "B")),
        Production("A", ("a",)),
        Production("B", ("b",)),
    ]

    first = build_tree(derivation, G, Orientation.LEFT)
    second = build_tree(derivation, G, Orientation.LEFT)
    assert len(derivation) == 3
    assert first == second


def test_empty_derivation():
    assert build_tree([], pair_grammar(), Orientation.LEFT) is None
    assert build_tree([], pair_grammar(), Orientation.RIGHT) is None


def test_incomplete_derivation():
    """Nonterminals with no production left are simply missing."""
    G = Grammar.from_text("S -> a S b | c")

    tree = build_tree([Production("S", ("a", "S", "b"))], G, Orientation.RIGHT)
    assert tree == _tree(("S", "a", "b"))

    tree = build_tree([Production("S", ("a", "S", "b"))], G, Orientation.LEFT)
    assert tree == _tree(("S", "a", "b"))

    G = pair_grammar()
    tree = build_tree([Production("S", ("A", "B")), Production("A", ("a",))], G, Orientation.LEFT)
    assert tree == _tree(("S", ("A", "a")))


def test_epsilon_children():
    G = Grammar([("S", ["A", "b"]), ("A", [])])
    derivation = [Production("S", ("A", "b")), Production("A", ())]

    for orientation in Orientation:
        tree = build_tree(derivation, G, orientation)
        assert tree == Tree("S", [Tree("A"), Tree("b")])
