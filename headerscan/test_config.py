import pytest

from headerscan.config import DEFAULT_EXCLUDES, load_config
from headerscan.errors import ConfigError, ConfigFileError, MatchError
from headerscan.matching import covers
from headerscan.rendering import substitute
from headerscan.styles import DOUBLESLASH_STYLE


def test_scenario_config(scenario):
    config = load_config(scenario)
    assert config.path == scenario / "licenserc.toml"
    assert config.properties == {"copyrightOwner": "Acme", "inceptionYear": "2022"}
    assert config.years == ("2022",)
    assert config.keywords == ("copyright",)
    assert config.use_default_excludes and config.use_gitignore
    assert covers("Cargo.toml", config.rules)
    assert not covers("settings.toml", config.rules)
    assert not covers("licenserc.toml", config.rules)


def test_default_excludes_can_be_disabled(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\nuseDefaultExcludes = false\n'})
    config = load_config(root)
    assert covers("package.json", config.rules)

    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\n'})
    config = load_config(root)
    assert not covers("package.json", config.rules)
    assert not covers("LICENSE", config.rules)
    assert len(config.rules) == len(DEFAULT_EXCLUDES) + 1


def test_explicit_config_path(tree):
    root = tree({"conf/headers.toml": 'inlineHeader = "Copyright"\n', "src/a.rs": ""})
    config = load_config(root, root / "conf" / "headers.toml")
    assert config.root == root
    assert config.template == "Copyright"


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigFileError) as e:
        load_config(tmp_path)
    assert "Missing configuration file" in str(e.value)


def test_root_must_be_a_directory(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope")


def test_invalid_toml(tree):
    root = tree({"licenserc.toml": "inlineHeader = \n"})
    with pytest.raises(ConfigFileError) as e:
        load_config(root)
    assert "Invalid TOML" in str(e.value)


def test_unknown_key(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\nexclude = ["a"]\n'})
    with pytest.raises(ConfigFileError) as e:
        load_config(root)
    assert "exclude" in str(e.value)


@pytest.mark.parametrize("doc", [
    'excludes = []\n',
    'inlineHeader = "Copyright"\nheaderPath = "HEADER.txt"\n',
])
def test_exactly_one_header_source(tree, doc):
    root = tree({"licenserc.toml": doc, "HEADER.txt": "Copyright"})
    with pytest.raises(ConfigFileError):
        load_config(root)


def test_header_path_is_relative_to_config(tree):
    root = tree({
        "licenserc.toml": 'headerPath = "etc/HEADER.txt"\n[properties]\nowner = "Acme"\n',
        "etc/HEADER.txt": "Copyright {owner}\n",
    })
    assert load_config(root).template == "Copyright {owner}\n"


def test_missing_header_template(tree):
    root = tree({"licenserc.toml": 'headerPath = "NOPE.txt"\n'})
    with pytest.raises(ConfigFileError) as e:
        load_config(root)
    assert "Missing header template" in str(e.value)


def test_bundled_template(tree):
    root = tree({"licenserc.toml": (
        'headerPath = "Apache-2.0.txt"\n'
        '[properties]\ninceptionYear = 2019\ncopyrightOwner = "Acme"\n'
    )})
    config = load_config(root)
    header = substitute(config.template, config.properties)
    assert header.startswith("Copyright 2019 Acme\n\nLicensed under the Apache License")


def test_unbound_placeholder_is_a_config_error(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright {inceptionYear} {owner}"\n'})
    with pytest.raises(ConfigError) as e:
        load_config(root)
    assert "Unbound placeholder" in str(e.value)


def test_scalar_properties_become_strings(tree):
    root = tree({"licenserc.toml": (
        'inlineHeader = "Copyright"\n'
        '[properties]\nyear = 2020\nflag = true\nratio = 1.5\n'
    )})
    assert load_config(root).properties == {"year": "2020", "flag": "true", "ratio": "1.5"}


def test_non_scalar_property(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\n[properties]\nowners = ["a", "b"]\n'})
    with pytest.raises(ConfigFileError):
        load_config(root)


def test_malformed_glob(tree):
    root = tree({"licenserc.toml": r'''
inlineHeader = "Copyright"
excludes = ["foo\\"]
'''})
    with pytest.raises(MatchError):
        load_config(root)


def test_excludes_must_be_strings(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\nexcludes = [1]\n'})
    with pytest.raises(ConfigFileError):
        load_config(root)


def test_mapping(tree):
    root = tree({"licenserc.toml": (
        'inlineHeader = "Copyright"\n'
        '[mapping]\n".TPL" = "DOUBLESLASH_STYLE"\n'
    )})
    assert load_config(root).mapping == {".tpl": DOUBLESLASH_STYLE}


def test_unknown_mapping_style(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\n[mapping]\n".tpl" = "WAVY_STYLE"\n'})
    with pytest.raises(ConfigFileError) as e:
        load_config(root)
    assert "WAVY_STYLE" in str(e.value)


def test_custom_keywords(tree):
    root = tree({"licenserc.toml": 'inlineHeader = "Copyright"\nkeywords = ["SPDX", "license"]\n'})
    assert load_config(root).keywords == ("SPDX", "license")
