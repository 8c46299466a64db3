import pytest

import unclog.history as uh
import unclog.model as um


def test_commit_range_is_tip_first_and_excludes_base(linear_graph):
    base, commits = uh.commit_range(linear_graph, base='v1.0.0', tip='HEAD')

    assert base.hexsha == 'a'
    assert [c.hexsha for c in commits] == ['d', 'c', 'b']


def test_commit_range_single_commit(linear_graph):
    base, commits = uh.commit_range(linear_graph, base='c', tip='d')

    assert base.hexsha == 'c'
    assert [c.hexsha for c in commits] == ['d']


def test_commit_range_empty(linear_graph):
    with pytest.raises(um.EmptyRange):
        uh.commit_range(linear_graph, base='HEAD', tip='d')


@pytest.mark.parametrize('base,tip', [
    ('v0.9.0', 'HEAD'),
    ('v1.0.0', 'no-such-branch'),
])
def test_commit_range_unknown_revision(linear_graph, base, tip):
    with pytest.raises(um.RevisionNotFound):
        uh.commit_range(linear_graph, base=base, tip=tip)


def test_commit_range_base_not_reachable(in_memory_graph):
    # a - b - c
    #  \
    #   x
    graph = in_memory_graph(parents={
        'a': (),
        'b': ('a',),
        'c': ('b',),
        'x': ('a',),
    })

    with pytest.raises(um.BaseNotReachable):
        uh.commit_range(graph, base='x', tip='c')


def test_commit_range_rejects_merge_commits(in_memory_graph):
    graph = in_memory_graph(parents={
        'a': (),
        'b': ('a',),
        'x': ('a',),
        'm': ('b', 'x'),
        'c': ('m',),
    })

    with pytest.raises(um.MergeCommitUnsupported):
        uh.commit_range(graph, base='a', tip='c')


def test_branch_range_walks_back_to_fork_point(in_memory_graph):
    # main:   a - b - c
    # branch:      \
    #               f1 - f2
    graph = in_memory_graph(
        parents={
            'a': (),
            'b': ('a',),
            'c': ('b',),
            'f1': ('b',),
            'f2': ('f1',),
        },
        refs={
            'origin/develop': 'c',
            'HEAD': 'f2',
        },
    )

    fork_point, commits = uh.branch_range(graph, main_rev='origin/develop', branch='HEAD')

    assert fork_point.hexsha == 'b'
    assert [c.hexsha for c in commits] == ['f2', 'f1']


def test_change_path():
    added = uh.Change(uh.ChangeAction.ADDED, None, 'changelog/a.md')
    deleted = uh.Change(uh.ChangeAction.DELETED, 'changelog/b.md', None)

    assert added.path == 'changelog/a.md'
    assert deleted.path == 'changelog/b.md'
