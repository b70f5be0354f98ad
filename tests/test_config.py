import pytest

from mexpr.mexpr_config import detect_format, deserialize, load_config
from mexpr.mexpr_context import Config, Context
from mexpr.mexpr_numbers import Complex, Float, Rational
from mexpr.mexpr_precise import MpReal


@pytest.mark.parametrize("text, fmt", [
    ('{"precision": 64}', 'json'),
    ('precision = 64\nroot_policy = "all"', 'toml'),
    ('precision: 64\nroot_policy: all', 'yaml'),
    ('', 'yaml'),
])
def test_detect_format(text, fmt):
    assert detect_format(text) == fmt


def test_deserialize_each_format():
    expected = {'precision': 64, 'root_policy': 'all'}
    assert deserialize('{"precision": 64, "root_policy": "all"}', 'json') == expected
    assert deserialize('precision: 64\nroot_policy: all\n', 'yml') == expected
    assert deserialize('precision = 64\nroot_policy = "all"\n', 'toml') == expected
    with pytest.raises(ValueError):
        deserialize('a = 1', 'ini')


def test_load_config_from_mapping():
    config, backend = load_config({'implicit_multiplication': False, 'backend': 'rational'})
    assert config == Config(implicit_multiplication=False)
    assert backend is Rational


def test_load_config_defaults():
    config, backend = load_config({})
    assert config == Config()
    assert backend is Float


def test_load_config_from_yaml():
    text = "backend: complex\nroot_policy: all\nprecision: 80\n"
    config, backend = load_config(text)
    assert config == Config(root_policy='all', precision=80)
    assert backend is Complex


def test_load_config_from_toml_bytes():
    config, backend = load_config(b'backend = "mpreal"\nprecision = 256\n')
    assert config.precision == 256
    assert backend is MpReal


def test_load_config_from_json_with_explicit_format():
    config, _ = load_config('{"implicit_multiplication": false}', fmt='json')
    assert config.implicit_multiplication is False


def test_empty_yaml_document_is_the_default_config():
    assert load_config("") == (Config(), Float)


@pytest.mark.parametrize("data, error", [
    ({'precison': 64}, ValueError),
    ({'backend': 'decimal'}, ValueError),
    ({'root_policy': 'some'}, ValueError),
    ({'precision': -1}, ValueError),
    ({'implicit_multiplication': 'yes'}, TypeError),
    ('- 1\n- 2\n', ValueError),
    ('precision: [unclosed', ValueError),
    ('{"precision": ', ValueError),
    (42, TypeError),
])
def test_load_config_rejects_bad_input(data, error):
    with pytest.raises(error):
        load_config(data)


def test_unknown_keys_are_named():
    with pytest.raises(ValueError, match="precison"):
        load_config({'precison': 64})


def test_context_from_config_text():
    ctx = Context.from_config('backend: rational\nimplicit_multiplication: false\n')
    assert ctx.number is Rational
    assert ctx.implicit_multiplication is False
    assert ctx.is_function("sqrt")
