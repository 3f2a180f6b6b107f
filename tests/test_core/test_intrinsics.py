"""Tests for intrinsic function helpers."""

from sam_translate.core.intrinsics import (
    GetAtt,
    Ref,
    Sub,
    deep_copy,
    get_att,
    intrinsic_name,
    is_intrinsic,
    is_ref,
    ref,
    referenced_logical_id,
    rewrite_references,
    sub,
)


class TestBuilders:
    """Tests for the long-form builders."""

    def test_ref(self) -> None:
        """Should build a Ref map."""
        assert ref("MyBucket") == {"Ref": "MyBucket"}
        assert Ref("MyBucket").to_json() == {"Ref": "MyBucket"}

    def test_get_att(self) -> None:
        """Should build a GetAtt map with a two-element list."""
        assert get_att("MyRole", "Arn") == {"Fn::GetAtt": ["MyRole", "Arn"]}
        assert GetAtt("MyRole", "Arn").to_json() == get_att("MyRole", "Arn")

    def test_sub_without_variables(self) -> None:
        """Should build a plain string Sub."""
        assert sub("${AWS::Region}") == {"Fn::Sub": "${AWS::Region}"}

    def test_sub_with_variables(self) -> None:
        """Should build a Sub list with a variable map."""
        assert Sub("${X}", {"X": ref("Y")}).to_json() == {
            "Fn::Sub": ["${X}", {"X": {"Ref": "Y"}}]
        }


class TestPredicates:
    """Tests for intrinsic recognition."""

    def test_intrinsic_name(self) -> None:
        """Should return the key of a single-key intrinsic map."""
        assert intrinsic_name({"Fn::Join": ["", []]}) == "Fn::Join"
        assert intrinsic_name({"Ref": "X", "Other": 1}) is None
        assert intrinsic_name({"NotIntrinsic": 1}) is None
        assert intrinsic_name("Ref") is None

    def test_is_intrinsic_and_is_ref(self) -> None:
        """Should tell intrinsics and Refs apart."""
        assert is_intrinsic({"Fn::GetAtt": ["A", "Arn"]})
        assert not is_ref({"Fn::GetAtt": ["A", "Arn"]})
        assert is_ref({"Ref": "A"})
        assert not is_intrinsic({"Handler": "index.handler"})

    def test_referenced_logical_id(self) -> None:
        """Should extract the target of plain names, Refs and GetAtts."""
        assert referenced_logical_id("Table") == "Table"
        assert referenced_logical_id({"Ref": "Table"}) == "Table"
        assert referenced_logical_id({"Fn::GetAtt": ["Table", "Arn"]}) == "Table"
        assert referenced_logical_id({"Fn::GetAtt": "Table.StreamArn"}) == "Table"
        assert referenced_logical_id({"Fn::Sub": "x"}) is None
        assert referenced_logical_id("") is None


class TestRewriteReferences:
    """Tests for reference rewriting."""

    def test_rewrites_nested_refs_and_getatts(self) -> None:
        """Should point every Ref and GetAtt at the new ID."""
        tree = {
            "A": {"Ref": "Old"},
            "B": [{"Fn::GetAtt": ["Old", "Arn"]}, {"Fn::GetAtt": "Old.Arn"}],
            "C": {"Ref": "Other"},
        }
        result = rewrite_references(tree, "Old", "New")

        assert result == {
            "A": {"Ref": "New"},
            "B": [{"Fn::GetAtt": ["New", "Arn"]}, {"Fn::GetAtt": "New.Arn"}],
            "C": {"Ref": "Other"},
        }

    def test_does_not_mutate_input(self) -> None:
        """Should leave the original tree untouched."""
        tree = {"A": {"Ref": "Old"}}
        rewrite_references(tree, "Old", "New")
        assert tree == {"A": {"Ref": "Old"}}


class TestDeepCopy:
    """Tests for deep_copy."""

    def test_shares_no_containers(self) -> None:
        """Should copy nested maps and lists."""
        tree = {"a": [{"b": 1}], "c": {"d": [2]}}
        copied = deep_copy(tree)

        assert copied == tree
        copied["a"][0]["b"] = 99
        copied["c"]["d"].append(3)
        assert tree == {"a": [{"b": 1}], "c": {"d": [2]}}
