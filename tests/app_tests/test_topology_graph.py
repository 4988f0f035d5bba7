"""Tests for the declaration graph."""

import json

import pytest
from terraformpy import Resource, TFObject

from webfleet.topology.graph import Declaration, TopologyError, TopologyGraph


def _graph() -> TopologyGraph:
    graph = TopologyGraph()
    vpc = graph.add(Declaration("aws_vpc", "default", {"default": True}, kind="data"))
    group = graph.add(Declaration("aws_security_group", "edge", {"vpc_id": vpc.ref("id")}))
    graph.add(
        Declaration(
            "aws_lb",
            "web",
            {"security_groups": [group.ref("id")], "tags": {"Vpc": vpc.ref("id")}},
        )
    )
    return graph


def test_address_and_references() -> None:
    """Data lookups are addressed under ``data.`` and references interpolate."""
    declaration = Declaration("aws_vpc", "default", {}, kind="data")

    assert declaration.address == "data.aws_vpc.default"
    assert declaration.expr("id") == "data.aws_vpc.default.id"
    assert declaration.ref("id") == "${data.aws_vpc.default.id}"


def test_references_match_terraformpy_interpolation() -> None:
    """References to attributes set on the declaration still interpolate."""
    declaration = Declaration("aws_db_instance", "database", {"username": "admin"})

    assert declaration.ref("username") == str(Resource("aws_db_instance", "database").username)
    assert declaration.ref("username") == "${aws_db_instance.database.username}"


def test_to_object_carries_attributes_and_edges() -> None:
    """The terraformpy object compiles to the declared body."""
    TFObject.reset()
    try:
        Declaration("second", "b", {"size": 2}, depends_on=["first.a"]).to_object()
        document = TFObject.compile()
    finally:
        TFObject.reset()

    assert json.loads(json.dumps(document))["resource"]["second"]["b"] == {
        "size": 2,
        "depends_on": ["first.a"],
    }


def test_duplicate_declaration_is_rejected() -> None:
    """Two declarations cannot share an address."""
    graph = _graph()

    with pytest.raises(TopologyError, match="Duplicate declaration aws_lb.web"):
        graph.add(Declaration("aws_lb", "web", {}))


def test_implicit_dependencies_follow_nested_references() -> None:
    """References inside lists and dicts count as edges."""
    graph = _graph()

    assert graph.implicit_dependencies(graph.get("aws_lb.web")) == {
        "aws_security_group.edge",
        "data.aws_vpc.default",
    }


def test_prefix_addresses_are_not_confused() -> None:
    """``aws_secret.x`` is not a reference to ``secret.x``."""
    graph = TopologyGraph()
    graph.add(Declaration("secret", "x", {}))
    graph.add(Declaration("aws_secret", "x", {}))
    consumer = graph.add(Declaration("consumer", "a", {"value": "${aws_secret.x.arn}"}))

    assert graph.implicit_dependencies(consumer) == {"aws_secret.x"}


def test_apply_order_groups_layers() -> None:
    """Each layer only depends on earlier layers."""
    graph = _graph()

    assert graph.apply_order() == [
        ["data.aws_vpc.default"],
        ["aws_security_group.edge"],
        ["aws_lb.web"],
    ]
    assert graph.layer_index("aws_lb.web") == 2


def test_explicit_edge_delays_dependent() -> None:
    """``depends_on`` orders declarations no reference connects."""
    graph = TopologyGraph()
    graph.add(Declaration("first", "a", {}))
    graph.add(Declaration("second", "b", {}, depends_on=["first.a"]))

    assert graph.explicit_edges() == [("second.b", "first.a")]
    assert graph.layer_index("second.b") == 1


def test_validate_rejects_unknown_explicit_dependency() -> None:
    """An explicit edge must point at a declared address."""
    graph = TopologyGraph()
    graph.add(Declaration("second", "b", {}, depends_on=["first.a"]))

    with pytest.raises(TopologyError, match="unknown declaration first.a"):
        graph.validate()


def test_cycle_is_reported() -> None:
    """Cycles surface as topology errors."""
    graph = TopologyGraph()
    graph.add(Declaration("left", "a", {"peer": "${right.b.id}"}))
    graph.add(Declaration("right", "b", {"peer": "${left.a.id}"}))

    with pytest.raises(TopologyError, match="Dependency cycle"):
        graph.apply_order()


def test_unknown_address_lookup() -> None:
    """Looking up a missing address raises a topology error."""
    with pytest.raises(TopologyError, match="Unknown declaration"):
        TopologyGraph().get("aws_lb.web")


def test_outputs_keep_declaration_order() -> None:
    """Outputs are returned in the order they were added."""
    graph = TopologyGraph()
    graph.add_output("b", "${x.y.b}")
    graph.add_output("a", "${x.y.a}", "first")

    assert [output.name for output in graph.outputs] == ["b", "a"]
    with pytest.raises(TopologyError):
        graph.add_output("a", "other")
