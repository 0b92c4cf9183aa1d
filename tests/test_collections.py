from datetime import date
from pathlib import Path

import pytest

from inkwell.collections import ContentIndex, assign_tag_slugs, build_index
from inkwell.content import Document
from inkwell.errors import DuplicateIdentifierError, EmptyCollectionError


def make_doc(identifier, day, tags=(), title=None):
    return Document(
        identifier=identifier,
        title=title or identifier.title(),
        date=day,
        tags=frozenset(tags),
        body="",
        path=Path(f"{identifier}.md"),
    )


def sample_documents():
    return [
        make_doc("gunicorn", date(2024, 9, 21), ["python", "wsgi"]),
        make_doc("asgi", date(2024, 10, 12), ["python", "asgi"]),
        make_doc("metaclasses", date(2024, 11, 20), ["python"]),
        make_doc("mro", date(2024, 10, 12), ["python", "OOP"]),
        make_doc("asyncio", date(2024, 10, 12), []),
    ]


def test_orders_newest_first_with_identifier_tiebreak():
    index = build_index(sample_documents())
    assert isinstance(index, ContentIndex)
    assert [d.identifier for d in index] == [
        "metaclasses",
        "asgi",
        "asyncio",
        "mro",
        "gunicorn",
    ]


def test_order_does_not_depend_on_input_order():
    docs = sample_documents()
    forward = build_index(docs)
    backward = build_index(list(reversed(docs)))
    assert forward.documents == backward.documents
    assert dict(forward.by_tag) == dict(backward.by_tag)


def test_tag_membership_and_order():
    docs = sample_documents()
    index = build_index(docs)
    for doc in docs:
        for tag in index.by_tag:
            assert (doc in index.by_tag[tag]) == (tag in doc.tags)
    for tag, tagged in index.by_tag.items():
        assert list(tagged) == [d for d in index if tag in d.tags]
    assert [d.identifier for d in index.with_tag("python")] == [
        "metaclasses",
        "asgi",
        "mro",
        "gunicorn",
    ]


def test_tags_are_sorted_case_insensitively():
    index = build_index(sample_documents())
    assert index.tags() == ["asgi", "OOP", "python", "wsgi"]


def test_index_is_read_only():
    index = build_index(sample_documents())
    assert isinstance(index.documents, tuple)
    assert all(isinstance(v, tuple) for v in index.by_tag.values())
    with pytest.raises(TypeError):
        index.by_tag["new"] = ()


def test_rebuild_produces_fresh_index():
    docs = sample_documents()
    first = build_index(docs)
    second = build_index(docs + [make_doc("typing", date(2024, 12, 1), ["python"])])
    assert len(first) == 5
    assert len(second) == 6
    assert "typing" not in [d.identifier for d in first.with_tag("python")]
    assert second[0].identifier == "typing"


def test_empty_collection_policy():
    index = build_index([])
    assert len(index) == 0
    assert index.tags() == []
    with pytest.raises(EmptyCollectionError):
        build_index([], require_documents=True)


def test_duplicate_identifiers_rejected():
    docs = [make_doc("same", date(2024, 1, 1)), make_doc("same", date(2024, 2, 1))]
    with pytest.raises(DuplicateIdentifierError) as exc_info:
        build_index(docs)
    assert exc_info.value.identifier == "same"


def test_helpers():
    index = build_index(sample_documents())
    assert [d.identifier for d in index.latest(2)] == ["metaclasses", "asgi"]
    assert index.with_tag("missing") == ()
    assert index.get("mro").title == "Mro"
    assert index.get("missing") is None


def test_tag_slugs_are_unique():
    index = build_index(
        [
            make_doc("cpp", date(2024, 3, 1), ["c++"]),
            make_doc("c", date(2024, 2, 1), ["c", "Python"]),
            make_doc("py", date(2024, 1, 1), ["python"]),
        ]
    )
    assert dict(index.tag_slugs) == {
        "c": "c",
        "c++": "c-2",
        "Python": "python",
        "python": "python-2",
    }
    with pytest.raises(TypeError):
        index.tag_slugs["c"] = "other"


def test_assign_tag_slugs_skips_taken_suffixes():
    assert assign_tag_slugs(["c", "c-2", "c++"]) == {"c": "c", "c-2": "c-2", "c++": "c-3"}
