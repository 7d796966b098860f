import pytest
from inline_snapshot import snapshot

from foldstack import CallGraph, Edge, MalformedInputError, Node, flatten, render_paths
from foldstack.callgraph import NO_ACTIVITY_MESSAGE


def make_graph(node_names, edges):
    return CallGraph(
        nodes=[Node(name) for name in node_names],
        edges=[Edge(src, dst, weight) for src, dst, weight in edges],
    )


def lines(result):
    return sorted(render_paths(result.paths).splitlines())


def test_flatten_two_roots():
    graph = make_graph(
        ['N1', 'N2', 'N3', 'N4', 'N5', 'N6'],
        [
            ('N1', 'N2', 1),
            ('N1', 'N3', 2),
            ('N4', 'N5', 1),
            ('N4', 'N6', 4),
            ('N6', 'N5', 4),
        ],
    )
    assert graph.roots() == ['N1', 'N4']
    result = flatten(graph)
    assert not result.no_activity
    assert result.warnings == []
    assert lines(result) == snapshot(['N1;N2 1', 'N1;N3 2', 'N4;N5 1', 'N4;N6;N5 8'])


def test_cycle_is_dropped():
    graph = make_graph(
        ['N0', 'N1', 'N2', 'N3'],
        [('N0', 'N1', 1), ('N1', 'N2', 2), ('N2', 'N1', 3), ('N1', 'N3', 4)],
    )
    seen = []
    result = flatten(graph, seen.append)
    assert lines(result) == snapshot(['N0;N1;N3 5'])
    assert [w.path for w in seen] == [('N0', 'N1', 'N2', 'N1')]
    assert result.warnings == seen
    assert 'N0;N1;N2;N1' in str(seen[0])


def test_cycle_only_branch_gives_no_lines():
    graph = make_graph(['N0', 'N1', 'N2'], [('N0', 'N1', 1), ('N1', 'N2', 1), ('N2', 'N1', 1)])
    result = flatten(graph)
    assert result.paths == []
    assert len(result.warnings) == 1


def test_no_edges_is_no_activity():
    result = flatten(make_graph(['N1', 'N2'], []))
    assert result.no_activity
    assert result.paths == []
    assert NO_ACTIVITY_MESSAGE.startswith('Your application is not doing anything')


def test_trivial_graph_is_activity():
    result = flatten(make_graph(['N1', 'N2'], [('N1', 'N2', 0)]))
    assert not result.no_activity
    assert lines(result) == ['N1;N2 0']


def test_missing_weight_counts_as_zero():
    graph = make_graph(['N1', 'N2', 'N3'], [('N1', 'N2', None), ('N2', 'N3', 6)])
    assert lines(flatten(graph)) == ['N1;N2;N3 6']


def test_shared_subgraph_reached_from_each_root():
    graph = make_graph(
        ['N1', 'N2', 'N3', 'N4'],
        [('N1', 'N3', 1), ('N2', 'N3', 2), ('N3', 'N4', 3)],
    )
    result = flatten(graph)
    assert result.warnings == []
    assert lines(result) == ['N1;N3;N4 4', 'N2;N3;N4 5']


def test_diamond_is_not_a_cycle():
    graph = make_graph(
        ['N1', 'N2', 'N3', 'N4'],
        [('N1', 'N2', 1), ('N1', 'N3', 1), ('N2', 'N4', 1), ('N3', 'N4', 2)],
    )
    result = flatten(graph)
    assert result.warnings == []
    assert lines(result) == ['N1;N2;N4 2', 'N1;N3;N4 3']


def test_artifact_nodes_are_not_roots():
    graph = make_graph(['L', 'N1', 'N2', 'N3'], [('N1', 'N2', 1)])
    assert graph.roots() == ['N1', 'N3']
    # N3 has no edges at all and contributes nothing
    assert lines(flatten(graph)) == ['N1;N2 1']


def test_custom_root_prefix():
    graph = make_graph(['F1', 'F2'], [('F1', 'F2', 3)])
    assert flatten(graph).paths == []
    assert lines(flatten(graph, root_prefix='F')) == ['F1;F2 3']


def test_labels_come_from_tooltips():
    graph = CallGraph(
        nodes=[
            Node.from_attrs('N1', {'tooltip': '"runtime.main\\nproc.go"'}),
            Node.from_attrs('N2', {'tooltip': 'main.main'}),
        ],
        edges=[Edge.from_attrs('N1', 'N2', {'weight': '7'})],
    )
    assert render_paths(flatten(graph).paths) == snapshot('runtime.main proc.go;main.main 7\n')


def test_edge_from_attrs():
    assert Edge.from_attrs('N1', 'N2', {}) == Edge('N1', 'N2', None)
    assert Edge.from_attrs('N1', 'N2', {'weight': '12', 'label': ' 12'}).weight == 12
    with pytest.raises(MalformedInputError, match='non-integer weight'):
        Edge.from_attrs('N1', 'N2', {'weight': 'x'})


def test_deep_chain_does_not_recurse():
    names = [f'N{i}' for i in range(5000)]
    edges = [(a, b, 1) for a, b in zip(names, names[1:])]
    result = flatten(make_graph(names, edges))
    (path,) = result.paths
    assert path.weight == 4999
    assert path.labels[0] == 'N0'
    assert path.labels[-1] == 'N4999'


def test_flatten_calls_are_independent():
    graph = make_graph(['N0', 'N1', 'N2'], [('N0', 'N1', 1), ('N1', 'N2', 1), ('N2', 'N1', 1)])
    first = flatten(graph)
    second = flatten(graph)
    assert first.warnings == second.warnings
    assert first.warnings is not second.warnings


def test_cycle_without_root_gives_nothing():
    # every node of a bare N1 -> N2 -> N1 loop has an incoming edge
    graph = make_graph(['N1', 'N2'], [('N1', 'N2', 1), ('N2', 'N1', 1)])
    assert graph.roots() == []
    result = flatten(graph)
    assert not result.no_activity
    assert result.paths == []
    assert result.warnings == []
