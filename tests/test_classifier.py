"""Tests for aidlprep.classifier."""

from __future__ import annotations

import pytest

from aidlprep.classifier import Classifier
from aidlprep.errors import SourceModelError
from tests._fixtures.memory_model import InMemorySourceModel

MARKER = "android.os.Parcelable"


def test_classify_reports_direct_implementer(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    foo = memory_model.declare(root, "com.example.Foo", interfaces=[MARKER])
    bar = memory_model.declare(root, "com.example.Bar", interfaces=["java.io.Serializable"])
    classifier = Classifier(memory_model, MARKER)

    assert classifier.classify(foo) == ["com.example.Foo"]
    assert classifier.classify(bar) == []


def test_classify_follows_interface_and_superclass_hierarchy(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    memory_model.declare(root, "com.example.Message", kind="interface", interfaces=[MARKER])
    memory_model.declare(root, "com.example.Base", interfaces=["com.example.Message"])
    child = memory_model.declare(root, "com.example.Child", superclass="com.example.Base")

    assert Classifier(memory_model, MARKER).classify(child) == ["com.example.Child"]


def test_classify_emits_outer_before_nested(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    outer = memory_model.declare(root, "com.example.Outer", interfaces=[MARKER])
    inner = memory_model.declare(root, "com.example.Outer.Inner", interfaces=[MARKER], outer=outer)
    memory_model.declare(root, "com.example.Outer.Inner.Deep", interfaces=[MARKER], outer=inner)
    memory_model.declare(root, "com.example.Outer.Sibling", interfaces=[MARKER], outer=outer)

    assert Classifier(memory_model, MARKER).classify(outer) == [
        "com.example.Outer",
        "com.example.Outer.Inner",
        "com.example.Outer.Inner.Deep",
        "com.example.Outer.Sibling",
    ]


def test_classify_reports_nested_match_without_outer(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    outer = memory_model.declare(root, "com.example.Holder")
    memory_model.declare(root, "com.example.Holder.Payload", interfaces=[MARKER], outer=outer)

    assert Classifier(memory_model, MARKER).classify(outer) == ["com.example.Holder.Payload"]


def test_classify_requires_exact_marker_name(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    lookalike = memory_model.declare(root, "com.example.Fake", interfaces=["com.example.Parcelable"])

    assert Classifier(memory_model, MARKER).classify(lookalike) == []


def test_classify_propagates_resolution_failure(memory_model: InMemorySourceModel) -> None:
    root = memory_model.add_root("/project/src")
    outer = memory_model.declare(root, "com.example.Outer", interfaces=[MARKER])
    memory_model.declare(root, "com.example.Outer.Broken", outer=outer)
    memory_model.failures.add("com.example.Outer.Broken")

    with pytest.raises(SourceModelError):
        Classifier(memory_model, MARKER).classify(outer)
