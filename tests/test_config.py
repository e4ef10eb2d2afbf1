"""Tests for configuration, flags and the service helpers."""

import logging

import pytest


def test_parse_flags():
    """Test visibility policies parse from strings and iterables."""
    from pyqt_formsync import InvalidConfiguration, parse_flags

    assert parse_flags("touched, submitted") == frozenset({"touched", "submitted"})
    assert parse_flags("$dirty") == frozenset({"dirty"})
    assert parse_flags(["touched"]) == frozenset({"touched"})
    assert parse_flags([]) == frozenset()
    assert parse_flags(None) is None
    assert parse_flags("") is None

    with pytest.raises(InvalidConfiguration):
        parse_flags("touched, hovered")


def test_form_config_defaults_and_overrides():
    """Test the process-wide default and per-root overrides."""
    from pyqt_formsync import Form, FormConfig, get_form_config, set_form_config

    assert get_form_config() == FormConfig()

    set_form_config(FormConfig(show_errors_on="dirty", debug=True))
    assert get_form_config().show_errors_on == frozenset({"dirty"})

    form = Form("form", debug=False)
    assert form.context.config.show_errors_on == frozenset({"dirty"})
    assert form.debug is False
    assert form.registry.id_key == "name"

    config = FormConfig().with_overrides(id_key="key", debug=None)
    assert config.id_key == "key"
    assert config.debug is False


def test_show_errors_on_inheritance(qapp):
    """Test nested forms fall back to their parent's policy."""
    from pyqt_formsync import Control, Form, mount

    root = Form("root", show_errors_on="touched")
    child = Form("child")
    override = Form("override", show_errors_on="dirty")
    control = Control("name")
    mount(control, child)
    mount(child, root)
    mount(override, root)

    assert child.show_errors_on() == frozenset({"touched"})
    assert control.show_errors_on() == frozenset({"touched"})
    assert override.show_errors_on() == frozenset({"dirty"})


def test_debug_forms_log_at_info(qapp, caplog):
    """Test debug forms raise their own messages to INFO with a name prefix."""
    from pyqt_formsync import Control, Form, mount

    caplog.set_level(logging.INFO, logger="pyqt_formsync")
    form = Form("noisy", debug=True)
    mount(Control("email"), form)

    assert '[noisy] Registering control "email".' in caplog.text


def test_form_configure_rejects_wrong_shapes(qapp):
    """Test form configuration must match the form's mode."""
    from pyqt_formsync import Form, InvalidConfiguration

    group = Form("group", mode="group")
    with pytest.raises(InvalidConfiguration):
        group.configure([{}])
    with pytest.raises(InvalidConfiguration):
        group.configure("validators")


def test_flag_context_manager():
    """Test flags are validated and restored even when the block raises."""
    from pyqt_formsync.services import FlagContextManager, FormFlag

    class Holder:
        _in_distribute = False
        _in_commit = False

    holder = Holder()

    with pytest.raises(ValueError):
        with FlagContextManager.manage_flags(holder, _in_reset=True):
            pass

    with pytest.raises(RuntimeError):
        with FlagContextManager.distribute_context(holder):
            assert FlagContextManager.is_flag_set(holder, FormFlag.IN_DISTRIBUTE)
            raise RuntimeError("boom")
    assert not FlagContextManager.is_flag_set(holder, FormFlag.IN_DISTRIBUTE)


def test_mode_service_requires_every_handler():
    """Test a mode service missing a handler fails at construction."""
    from pyqt_formsync.services import ModeServiceABC

    class Incomplete(ModeServiceABC):
        def _get_handler_prefix(self):
            return '_collect_'

        def _collect_GROUP(self, form):
            return {}

    with pytest.raises(TypeError, match="_collect_ARRAY"):
        Incomplete()


def test_block_signals_nests(qapp):
    """Test nested blocks restore the outer blocking state."""
    from pyqt_formsync import Control
    from pyqt_formsync.services import SignalService

    control = Control("name")
    emitted = []
    control.value_changed.connect(emitted.append)

    with SignalService.block_signals(control):
        with SignalService.block_signals(control):
            control.set_value(1)
        control.set_value(2)
        assert control.signalsBlocked()

    assert not control.signalsBlocked()
    control.set_value(3)
    assert emitted == [3]
