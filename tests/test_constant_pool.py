import pytest
from hypothesis import given
from hypothesis import strategies as st

from mokapot.constant_pool import BadConstantPoolIndex, ConstantPool, Entry, EntryKind
from mokapot.values import JavaString


def sample_entry(kind: EntryKind) -> Entry:
    samples = {
        EntryKind.UTF8: {"value": "Hello"},
        EntryKind.INTEGER: {"value": -7},
        EntryKind.FLOAT: {"value": 1.5},
        EntryKind.LONG: {"value": 2**40},
        EntryKind.DOUBLE: {"value": 2.25},
        EntryKind.CLASS: {"name_index": 2},
        EntryKind.STRING: {"string_index": 2},
        EntryKind.FIELD_REF: {"class_index": 1, "name_and_type_index": 3},
        EntryKind.METHOD_REF: {"class_index": 1, "name_and_type_index": 3},
        EntryKind.INTERFACE_METHOD_REF: {"class_index": 1, "name_and_type_index": 3},
        EntryKind.NAME_AND_TYPE: {"name_index": 4, "descriptor_index": 5},
        EntryKind.METHOD_HANDLE: {"reference_kind": 6, "reference_index": 7},
        EntryKind.METHOD_TYPE: {"descriptor_index": 5},
        EntryKind.DYNAMIC: {"bootstrap_method_attr_index": 0, "name_and_type_index": 3},
        EntryKind.INVOKE_DYNAMIC: {"bootstrap_method_attr_index": 1, "name_and_type_index": 3},
        EntryKind.MODULE: {"name_index": 2},
        EntryKind.PACKAGE: {"name_index": 2},
    }
    return Entry(kind, **samples[kind])


@given(st.sampled_from(list(EntryKind)))
def test_constant_kind_prefix(kind):
    assert sample_entry(kind).constant_kind.startswith("CONSTANT_")


@pytest.mark.parametrize(
    "kind, expected",
    [
        (EntryKind.UTF8, "CONSTANT_Utf8"),
        (EntryKind.FIELD_REF, "CONSTANT_Fieldref"),
        (EntryKind.INTERFACE_METHOD_REF, "CONSTANT_InterfaceMethodref"),
        (EntryKind.INVOKE_DYNAMIC, "CONSTANT_InvokeDynamic"),
    ],
)
def test_constant_kind_names(kind, expected):
    assert sample_entry(kind).constant_kind == expected


@pytest.mark.parametrize(
    "tag, expected",
    [
        (1, "CONSTANT_Utf8"),
        (15, "CONSTANT_MethodHandle"),
        (20, "CONSTANT_Package"),
    ],
)
def test_entry_tags(tag, expected):
    assert sample_entry(EntryKind(tag)).constant_kind == expected


@given(st.lists(st.sampled_from(list(EntryKind)), min_size=1, max_size=50))
def test_count_accounts_for_wide_entries(kinds):
    pool = ConstantPool(sample_entry(kind) for kind in kinds)
    wide = sum(1 for kind in kinds if kind in (EntryKind.LONG, EntryKind.DOUBLE))
    assert len(pool) == len(kinds) + wide + 1


def test_long_takes_two_slots():
    long_entry = Entry(EntryKind.LONG, value=5)
    text = Entry(EntryKind.UTF8, value="x")
    pool = ConstantPool([long_entry, text])
    assert len(pool) == 4
    assert pool.get_entry(1) == long_entry
    assert pool.get_entry(3) == text
    for bad in (0, 2, 4, 100):
        with pytest.raises(BadConstantPoolIndex):
            pool.get_entry(bad)


def test_bad_index_message():
    pool = ConstantPool([Entry(EntryKind.DOUBLE, value=1.0)])
    with pytest.raises(BadConstantPoolIndex, match="Bad constant pool index: 2") as info:
        pool.get_entry(2)
    assert info.value.index == 2


def test_utf8_holds_java_string():
    entry = Entry(EntryKind.UTF8, value="abc")
    assert entry.value == JavaString("abc")


def test_entry_fields_accessible():
    entry = Entry(EntryKind.NAME_AND_TYPE, name_index=4, descriptor_index=5)
    assert entry.name_index == 4
    assert entry.descriptor_index == 5
    with pytest.raises(AttributeError):
        entry.class_index


def test_entry_rejects_wrong_fields():
    with pytest.raises(TypeError):
        Entry(EntryKind.CLASS, string_index=1)
    with pytest.raises(TypeError):
        Entry(EntryKind.CLASS)


def test_entry_rejects_out_of_range():
    with pytest.raises(ValueError):
        Entry(EntryKind.CLASS, name_index=0x10000)
    with pytest.raises(ValueError):
        Entry(EntryKind.INTEGER, value=2**31)
    with pytest.raises(ValueError):
        Entry(EntryKind.FLOAT, value=1e40)


def test_entry_is_immutable():
    entry = Entry(EntryKind.INTEGER, value=1)
    with pytest.raises(AttributeError):
        entry.value = 2
    assert entry.value == 1


def test_pool_rejects_non_entries():
    with pytest.raises(TypeError):
        ConstantPool([1, 2])