"""Tests for model value derivation and distribution."""

import pytest


def build_address_form():
    """Group form with control "foo" and an array of three address rows."""
    from pyqt_formsync import Control, Form, FormMode, mount

    root = Form("root")
    mount(Control("foo"), root)

    addresses = Form("addresses", mode=FormMode.ARRAY)
    for _ in range(3):
        row = Form("address")
        mount(Control("name"), row)
        mount(row, addresses)
    mount(addresses, root)

    root.set_model_values({"foo": "bar", "addresses": [{"name": 1}, {"name": 2}, {"name": 3}]})
    return root, addresses


def test_derive_nested_value(qapp):
    """Test a group with a nested array derives the full composite value."""
    root, addresses = build_address_form()

    assert root.get_model_values() == {
        "foo": "bar",
        "addresses": [{"name": 1}, {"name": 2}, {"name": 3}],
    }
    assert addresses.get_model_values() == [{"name": 1}, {"name": 2}, {"name": 3}]


def test_distribute_ignores_unknown_keys(qapp):
    """Test keys without a matching child are ignored."""
    root, _ = build_address_form()

    root.set_model_values({"foo": "baz", "unknownKey": 1})

    assert root.get_control("foo").get_value() == "baz"
    assert root.get_model_values()["addresses"] == [{"name": 1}, {"name": 2}, {"name": 3}]


def test_round_trip_is_idempotent(qapp):
    """Test distributing the derived value leaves it unchanged."""
    root, _ = build_address_form()

    before = root.get_model_values()
    root.set_model_values(before)
    assert root.get_model_values() == before


def test_mode_inference(qapp):
    """Test the first value fixes the mode."""
    from pyqt_formsync import Form, FormMode

    group = Form("group")
    array = Form("array")
    assert group.mode is None

    group.set_model_values({})
    array.set_model_values([])

    assert group.mode is FormMode.GROUP
    assert array.mode is FormMode.ARRAY
    assert group.get_model_values() == {}
    assert array.get_model_values() == []


def test_undetermined_form_derives_as_group(qapp):
    """Test an unfed form without explicit mode derives as an empty mapping."""
    from pyqt_formsync import Form

    assert Form().get_model_values() == {}
    assert Form(mode="array").get_model_values() == []


def test_shape_mismatch(qapp):
    """Test feeding the other shape or a scalar fails fast."""
    from pyqt_formsync import Form, ShapeMismatch

    form = Form("group")
    form.set_model_values({"a": 1})

    with pytest.raises(ShapeMismatch):
        form.set_model_values([1, 2])
    with pytest.raises(ShapeMismatch):
        Form("scalar").set_model_values(42)


def test_none_is_a_noop(qapp):
    """Test distributing None changes nothing."""
    from pyqt_formsync import Control, Form, mount

    form = Form("form")
    control = Control("a")
    mount(control, form)
    form.set_model_values({"a": 1})

    form.set_model_values(None)
    assert control.get_value() == 1
    assert form.mode is not None


def test_array_shorter_and_longer_values(qapp):
    """Test positional distribution tolerates length mismatches."""
    root, addresses = build_address_form()

    addresses.set_model_values([{"name": "x"}])
    assert addresses.get_model_values() == [{"name": "x"}, {"name": 2}, {"name": 3}]

    addresses.set_model_values([{"name": "a"}, {"name": "b"}, {"name": "c"}, {"name": "d"}])
    assert addresses.get_model_values() == [{"name": "a"}, {"name": "b"}, {"name": "c"}]


def test_array_remove_and_reinsert_preserves_siblings(qapp):
    """Test re-inserting a row at its position leaves sibling values alone."""
    from pyqt_formsync import mount, unmount

    root, addresses = build_address_form()
    rows = addresses.members()
    rows[0].get_control("name").set_value("edited")

    unmount(rows[1])
    assert addresses.get_model_values() == [{"name": "edited"}, {"name": 3}]

    mount(rows[1], addresses, index=1)
    assert addresses.members() == rows
    assert addresses.get_model_values() == [{"name": "edited"}, {"name": 2}, {"name": 3}]


def test_remounted_control_seeds_from_model(qapp):
    """Test a remounted control starts from the model value, not its last value."""
    from pyqt_formsync import mount, unmount

    root, _ = build_address_form()
    foo = root.get_control("foo")
    foo.set_value("edited")

    unmount(foo)
    assert foo.get_value() is None
    assert "foo" not in root.get_model_values()

    mount(foo, root)
    assert foo.get_value() == "bar"


def test_control_wins_name_collision(qapp):
    """Test a control shadows a child form of the same name until it is unmounted."""
    from pyqt_formsync import Control, Form, mount, unmount

    root = Form("root")
    child = Form("shared")
    mount(Control("inner"), child)
    mount(child, root)
    control = Control("shared")
    mount(control, root)

    root.set_model_values({"shared": 5})
    assert control.get_value() == 5
    assert root.get_model_values() == {"shared": 5}
    assert root.get_model_value("shared") == 5

    unmount(control)
    root.set_model_values({"shared": {"inner": "x"}})
    assert root.get_model_values() == {"shared": {"inner": "x"}}


def test_single_entry_access(qapp):
    """Test get_model_value/set_model_value by name and by index."""
    root, addresses = build_address_form()

    assert root.get_model_value("foo") == "bar"
    assert root.get_model_value("missing") is None
    assert addresses.get_model_value(1) == {"name": 2}

    root.set_model_value("foo", "qux")
    addresses.set_model_value(0, {"name": 9})

    assert root.get_model_values() == {
        "foo": "qux",
        "addresses": [{"name": 9}, {"name": 2}, {"name": 3}],
    }


def test_values_are_copied_on_commit(qapp):
    """Test mutating the source object does not change committed values."""
    from pyqt_formsync import Control, Form, mount

    form = Form("form")
    control = Control("tags")
    mount(control, form)

    tags = ["a"]
    control.set_value(tags)
    tags.append("b")

    assert control.get_value() == ["a"]


def test_root_emits_full_path(qapp):
    """Test the root reports nested changes with a dotted path."""
    root, addresses = build_address_form()
    changes = []
    derived = []
    root.value_changed.connect(lambda path, value: changes.append((path, value)))
    addresses.model_values_changed.connect(derived.append)

    addresses.members()[1].get_control("name").set_value("two")
    root.get_control("foo").set_value("top")

    assert changes == [("addresses.1.name", "two"), ("foo", "top")]
    assert derived == [[{"name": 1}, {"name": "two"}, {"name": 3}]]


def test_batch_commits_once(qapp):
    """Test a batch applies every value before notifying."""
    from pyqt_formsync import Control, Form, mount

    form = Form("form")
    first, last = Control("first"), Control("last")
    mount(first, form)
    mount(last, form)

    emitted = []
    observed = []
    form.model_values_changed.connect(emitted.append)
    first.value_changed.connect(lambda value: observed.append(form.get_model_values()))

    with form.context.batch():
        first.set_value("Ada")
        last.set_value("Lovelace")
        assert form.get_model_values() == {"first": None, "last": None}

    assert emitted == [{"first": "Ada", "last": "Lovelace"}]
    assert observed == [{"first": "Ada", "last": "Lovelace"}]


def test_raising_validator_does_not_drop_the_batch(qapp):
    """Test values staged after a raising validator are still committed and dispatched."""
    from pyqt_formsync import Control, Form, mount

    def strict(value):
        if value == "bad":
            raise ValueError("cannot validate")
        return True

    form = Form("form")
    a = Control("a", config={"validators": {"strict": strict}})
    b = Control("b")
    mount(a, form)
    mount(b, form)

    emitted = []
    form.model_values_changed.connect(emitted.append)

    with pytest.raises(ValueError, match="cannot validate"):
        with form.context.batch():
            a.set_value("bad")
            b.set_value("new-b")

    assert a.get_value() == "bad"
    assert b.get_value() == "new-b"
    assert emitted == [{"a": "bad", "b": "new-b"}]
    assert not form.context.has_staged

    a.set_value("good")
    assert a.valid


def test_listener_writes_run_after_dispatch(qapp):
    """Test a value staged by a listener is committed after the current pass."""
    from pyqt_formsync import Control, Form, mount

    form = Form("form")
    source, target = Control("source"), Control("target")
    mount(source, form)
    mount(target, form)

    source.value_changed.connect(lambda value: target.set_value(f"{value}!"))
    source.set_value("hi")

    assert form.get_model_values() == {"source": "hi", "target": "hi!"}


def test_reentrant_set_model_values_is_ignored(qapp, caplog):
    """Test a listener cannot start a second distribution during the first."""
    from pyqt_formsync import Control, Form, mount

    form = Form("form")
    control = Control("a")
    mount(control, form)
    form.model_values_changed.connect(lambda value: form.set_model_values({"a": "loop"}))

    form.set_model_values({"a": "first"})

    assert control.get_value() == "first"
    assert "Ignoring model value write" in caplog.text


def test_child_form_mount_seeds_from_parent_model(qapp):
    """Test a sub-form mounted after the data arrived receives its fragment."""
    from pyqt_formsync import Control, Form, mount

    root = Form("root")
    root.set_model_values({"address": {"city": "Paris"}})

    address = Form("address")
    city = Control("city")
    mount(city, address)
    mount(address, root)

    assert city.get_value() == "Paris"
    assert root.get_model_values() == {"address": {"city": "Paris"}}
