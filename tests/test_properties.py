import asyncio
import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from git_autopull import scanner
from git_autopull.classifier import RepositoryClassifier
from git_autopull.models import WorkspaceRoot

# Strategy: folder names that are valid on every filesystem and never collide
# with the .git marker itself.
names_strategy = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz0123456789_-", min_size=1, max_size=12
)

layout_strategy = st.dictionaries(keys=names_strategy, values=st.booleans(), max_size=8)


@settings(max_examples=30, deadline=None)
@given(layout=layout_strategy, root_is_repo=st.booleans())
def test_scan_returns_exactly_the_repositories(
    layout: dict[str, bool], root_is_repo: bool
) -> None:
    """
    Property: the scan result is the root alone when it is a repository,
    otherwise exactly the set of immediate subfolders that are repositories,
    independent of listing order.
    """
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for name, is_repo in layout.items():
            (root / name).mkdir()
            if is_repo:
                (root / name / ".git").mkdir()
        if root_is_repo:
            (root / ".git").mkdir()

        result = asyncio.run(
            scanner.scan([WorkspaceRoot(root)], RepositoryClassifier())
        )

        if root_is_repo:
            assert [r.path for r in result] == [root]
        else:
            expected = {root / name for name, is_repo in layout.items() if is_repo}
            assert {r.path for r in result} == expected
            assert len(result) == len(expected)


@settings(max_examples=30, deadline=None)
@given(names=st.lists(names_strategy, min_size=1, max_size=6), repeats=st.integers(1, 4))
def test_classification_is_idempotent(names: list[str], repeats: int) -> None:
    """
    Property: classifying the same paths any number of times yields the same
    answers and probes each distinct path exactly once.
    """
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for i, name in enumerate(dict.fromkeys(names)):
            (root / name).mkdir()
            if i % 2 == 0:
                (root / name / ".git").mkdir()

        classifier = RepositoryClassifier()

        async def classify_all() -> list[bool]:
            return await asyncio.gather(
                *(classifier.is_repository(root / n) for n in names)
            )

        async def classify_sequentially() -> list[bool]:
            return [await classifier.is_repository(root / n) for n in names]

        first = asyncio.run(classify_sequentially())
        assert classifier.probe_count == len(set(names))

        for _ in range(repeats):
            assert asyncio.run(classify_all()) == first
            assert asyncio.run(classify_sequentially()) == first

        assert classifier.probe_count == len(set(names))
        assert len(classifier.cache) == len(set(names))
