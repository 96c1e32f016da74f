"""Tests for zero value synthesis."""

import pytest

from structfill.config import Settings
from structfill.context import ResolveContext, owner_scope
from structfill.emitter import render
from structfill.errors import CyclicNonPointerComposite
from structfill.registry import TypeRegistry, scope_key
from structfill.types import NamedRef, Scope
from structfill.zero import zero_value

MODELS = '''package models

const Size = 3

type Kind int
type Roles []string
type Tags map[string]string
type Grid [2]Cell
type Handler func()

type Cell struct {
	On bool
}

type Everything struct {
	Flag    bool
	Name    string
	Count   int
	Ratio   float64
	Small   float32
	Letter  rune
	Bytes   []byte
	Pair    [2]int
	Sized   [Size]int
	Empty   [0]int
	Lookup  map[string]int
	Ptr     *Everything
	Err     error
	Any     interface{}
	Fn      func(int) bool
	Ch      chan string
	Kind    Kind
	Roles   Roles
	Tags    Tags
	Cell    Cell
	Grid    Grid
	Anon    struct{ X int }
	Handler Handler
}

type Loop struct {
	Next Loop
}

type P struct {
	Q Q
}

type Q struct {
	P P
}

type Wrapper struct {
	Items [1]Wrapper
}

type Tree struct {
	Children []Tree
	Parent   *Tree
	Index    map[string]Tree
}

type Chain Chain2
type Chain2 Chain
'''


@pytest.fixture
def context(tmp_path):
    (tmp_path / "models.go").write_text(MODELS)
    registry = TypeRegistry(settings=Settings(goroot=None))
    return ResolveContext(registry, Scope(path=scope_key(tmp_path), package="models"))


def _zero_of(context, type_name, field_name):
    record = context.registry.resolve(context.scope.path, type_name)
    f = record.get_field(field_name)
    return render(zero_value(f.type_ref, owner_scope(record), context))


class TestScalarZeros:
    @pytest.mark.parametrize(
        "field, expected",
        [
            ("Flag", "false"),
            ("Name", '""'),
            ("Count", "0"),
            ("Ratio", "0.0"),
            ("Small", "0.0"),
            ("Letter", "0"),
            ("Kind", "0"),
        ],
    )
    def test_scalar(self, context, field, expected):
        assert _zero_of(context, "Everything", field) == expected


class TestNilZeros:
    @pytest.mark.parametrize("field", ["Ptr", "Err", "Any", "Fn", "Ch", "Handler"])
    def test_nil(self, context, field):
        assert _zero_of(context, "Everything", field) == "nil"


class TestContainerZeros:
    def test_slice(self, context):
        assert _zero_of(context, "Everything", "Bytes") == "[]byte{}"

    def test_array_filled(self, context):
        assert _zero_of(context, "Everything", "Pair") == "[2]int{0, 0}"

    def test_array_with_constant_length(self, context):
        assert _zero_of(context, "Everything", "Sized") == "[Size]int{}"

    def test_zero_length_array(self, context):
        assert _zero_of(context, "Everything", "Empty") == "[0]int{}"

    def test_map(self, context):
        assert _zero_of(context, "Everything", "Lookup") == "map[string]int{}"

    def test_defined_containers_use_their_name(self, context):
        assert _zero_of(context, "Everything", "Roles") == "Roles{}"
        assert _zero_of(context, "Everything", "Tags") == "Tags{}"

    def test_inline_struct(self, context):
        assert _zero_of(context, "Everything", "Anon") == "struct{ X int }{}"


class TestRecordZeros:
    def test_nested_record(self, context):
        assert _zero_of(context, "Everything", "Cell") == "Cell{\n\tOn: false,\n}"

    def test_array_of_records_elides_element_type(self, context):
        assert _zero_of(context, "Everything", "Grid") == (
            "Grid{\n"
            "\t{\n"
            "\t\tOn: false,\n"
            "\t},\n"
            "\t{\n"
            "\t\tOn: false,\n"
            "\t},\n"
            "}"
        )

    def test_pointer_and_container_self_reference(self, context):
        value = zero_value(NamedRef("Tree"), context.scope, context)
        assert render(value) == (
            "Tree{\n"
            "\tChildren: []Tree{},\n"
            "\tParent: nil,\n"
            "\tIndex: map[string]Tree{},\n"
            "}"
        )


class TestValueCycles:
    def test_direct_cycle(self, context):
        with pytest.raises(CyclicNonPointerComposite) as exc_info:
            zero_value(NamedRef("Loop"), context.scope, context)
        assert exc_info.value.path == ["Loop", "Loop"]

    def test_mutual_cycle(self, context):
        with pytest.raises(CyclicNonPointerComposite) as exc_info:
            zero_value(NamedRef("P"), context.scope, context)
        assert exc_info.value.path == ["P", "Q", "P"]
        assert "P -> Q -> P" in str(exc_info.value)

    def test_cycle_through_array(self, context):
        with pytest.raises(CyclicNonPointerComposite):
            zero_value(NamedRef("Wrapper"), context.scope, context)

    def test_defined_type_cycle(self, context):
        with pytest.raises(CyclicNonPointerComposite) as exc_info:
            zero_value(NamedRef("Chain"), context.scope, context)
        assert exc_info.value.path == ["Chain", "Chain2", "Chain"]
