"""Tests for submit and reset."""

from concurrent.futures import Future

import pytest


def make_signup():
    from pyqt_formsync import Control, Form, mount
    from pyqt_formsync.validators import required

    form = Form("signup")
    email = Control("email", config={"validators": {"required": required}})
    mount(email, form)
    return form, email


def test_submit_calls_handler_with_values(qapp):
    """Test a valid form passes its model values to the handler."""
    form, email = make_signup()
    email.set_value("ada@example.com")
    received = []

    def handler(values):
        received.append((values, form.is_disabled(), email.is_disabled()))

    result = form.submit(handler)

    assert result.result(timeout=0) is True
    assert received == [({"email": "ada@example.com"}, True, True)]
    assert form.submitted
    assert email.state.submitted
    assert not form.submitting
    assert not form.is_disabled()


def test_submit_invalid_form_skips_handler(qapp):
    """Test an invalid form is marked submitted without calling the handler."""
    form, email = make_signup()
    form.configure({"email": {"errors": [("required", "Required.")]}})
    calls = []

    result = form.submit(calls.append)

    assert result.result(timeout=0) is False
    assert calls == []
    assert form.submitted


def test_submitted_policy_shows_errors(qapp):
    """Test errors gated on submitted appear after a submit."""
    from pyqt_formsync import Control, Form, mount
    from pyqt_formsync.validators import required

    form = Form("signup", show_errors_on="submitted")
    email = Control("email", config={"validators": {"required": required}})
    mount(email, form)
    assert email.get_errors() is None

    form.submit()
    assert email.get_errors() == {"required": True}


def test_handler_custom_errors_are_applied(qapp):
    """Test returned custom errors reach the named controls and are cleared on the next submit."""
    from pyqt_formsync import Control, Form, mount

    root, address = Form("root"), Form("address")
    email, city = Control("email"), Control("city")
    mount(email, root)
    mount(city, address)
    mount(address, root)

    result = root.submit(lambda values: {"email": "Taken.", "address": {"city": "Unknown city."}})

    assert result.result(timeout=0) is False
    assert email.get_error_message() == "Taken."
    assert city.get_error_message() == "Unknown city."
    assert root.invalid

    assert root.submit().result(timeout=0) is True
    assert email.get_errors() is None
    assert root.valid


def test_custom_errors_must_match_the_form_mode(qapp):
    """Test array forms refuse keyed custom errors and group forms refuse positional ones."""
    from pyqt_formsync import Control, Form, InvalidConfiguration, mount

    rows = Form("rows", mode="array")
    first, second = Control("name"), Control("name")
    mount(first, rows)
    mount(second, rows)

    with pytest.raises(InvalidConfiguration):
        rows.set_custom_error_message({"name": "Taken."})
    assert not first.has_custom_error()
    assert not second.has_custom_error()

    rows.set_custom_error_message([None, "Taken."])
    assert not first.has_custom_error()
    assert second.get_error_message() == "Taken."

    group = Form("group", mode="group")
    mount(Control("email"), group)
    with pytest.raises(InvalidConfiguration):
        group.set_custom_error_message(["Taken."])
    with pytest.raises(InvalidConfiguration):
        group.set_custom_error_message("Taken.")


def test_submit_in_progress(qapp):
    """Test a second submit while the handler is still running is refused."""
    from pyqt_formsync import SubmitInProgress

    form, email = make_signup()
    email.set_value("ada@example.com")
    pending = Future()

    result = form.submit(lambda values: pending)
    assert form.submitting
    assert form.is_disabled()

    with pytest.raises(SubmitInProgress):
        form.submit()

    pending.set_result(None)
    assert result.result(timeout=0) is True
    assert not form.submitting
    assert not form.is_disabled()


def test_submit_waits_for_async_validators(qapp):
    """Test the handler runs only after pending validators settle."""
    from pyqt_formsync import Control, Form, mount

    check = Future()
    form = Form("signup")
    username = Control("username", config={"async_validators": {"available": lambda value: check}})
    mount(username, form)
    calls = []

    result = form.submit(calls.append)
    assert calls == []
    assert not result.done()

    check.set_result(True)
    assert calls == [{"username": None}]
    assert result.result(timeout=0) is True


def test_handler_exception_propagates_through_future(qapp):
    """Test a failing handler sets the exception and re-enables the form."""
    form, email = make_signup()
    email.set_value("ada@example.com")

    def handler(values):
        raise RuntimeError("server down")

    result = form.submit(handler)

    with pytest.raises(RuntimeError, match="server down"):
        result.result(timeout=0)
    assert not form.submitting
    assert not form.is_disabled()


def test_reset_clears_interaction_flags(qapp):
    """Test reset returns controls to untouched and pristine, and forms to unsubmitted."""
    form, email = make_signup()
    email.update_from_view("typed")
    email.mark_touched()
    form.submit()
    assert form.touched and form.dirty and form.submitted

    emitted = []
    form.state_changed.connect(lambda: emitted.append(True))
    form.reset()

    assert not form.touched
    assert not form.dirty
    assert not form.submitted
    assert email.get_value() == "typed"
    assert emitted == [True]


def test_reset_with_values(qapp):
    """Test reset distributes new values and revalidates."""
    form, email = make_signup()
    email.update_from_view("typed")

    form.reset({"email": ""})

    assert email.get_value() == ""
    assert not email.dirty
    assert not email.valid

    email.reset("fresh")
    assert email.get_value() == "fresh"
    assert email.valid
