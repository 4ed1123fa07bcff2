"""Configuration loading: YAML file, environment overrides, validation."""

import pytest
import yaml

from split_kernel.config import (
    KernelConfig,
    apply_env_overrides,
    compute_checksum,
    load_config,
    load_yaml_file,
    parse_config,
)
from split_kernel.domain.ledger import MemberPolicy
from split_kernel.exceptions import ConfigurationError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "split.yaml"
    path.write_text(
        "currency: eur\n"
        "decimal_places: 2\n"
        "member_policy: auto_register\n"
        "history_limit: 10\n"
        "local_member_alias: self\n"
        "log_level: debug\n"
        "database_url: sqlite:///split.db\n"
    )
    return path


class TestDefaults:

    def test_defaults(self):
        config = KernelConfig()
        assert config.currency == "USD"
        assert config.member_policy is MemberPolicy.STRICT
        assert config.history_limit == 5
        assert config.local_member_alias == "me"

    def test_load_without_file_or_env(self):
        assert load_config(env={}) == KernelConfig()


class TestYaml:

    def test_load_file(self, config_file):
        config = load_config(config_file, env={})
        assert config.currency == "EUR"
        assert config.member_policy is MemberPolicy.AUTO_REGISTER
        assert config.history_limit == 10
        assert config.local_member_alias == "self"
        assert config.log_level == "DEBUG"
        assert config.database_url == "sqlite:///split.db"

    def test_path_from_environment(self, config_file):
        config = load_config(env={"SPLIT_KERNEL_CONFIG": str(config_file)})
        assert config.currency == "EUR"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path, env={}) == KernelConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", env={})

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("currency: [unterminated\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_yaml_file(path)

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"currency": "USD", "epsilon": 0.01})
        assert exc_info.value.key == "epsilon"

    def test_null_history_limit_means_unlimited(self):
        assert parse_config({"history_limit": None}).history_limit is None


class TestValidation:

    @pytest.mark.parametrize(
        "overrides,key",
        [
            ({"currency": "dollars"}, "currency"),
            ({"decimal_places": 7}, "decimal_places"),
            ({"decimal_places": "2"}, "decimal_places"),
            ({"member_policy": "lenient"}, "member_policy"),
            ({"history_limit": -1}, "history_limit"),
            ({"log_level": "LOUD"}, "log_level"),
            ({"database_url": ""}, "database_url"),
        ],
    )
    def test_invalid_values(self, overrides, key):
        with pytest.raises(ConfigurationError) as exc_info:
            KernelConfig(**overrides)
        assert exc_info.value.key == key
        assert exc_info.value.code == "INVALID_CONFIGURATION"

    def test_config_is_frozen(self):
        with pytest.raises(AttributeError):
            KernelConfig().currency = "EUR"


class TestEnvironmentOverrides:

    def test_overrides_file_values(self, config_file):
        config = load_config(
            config_file,
            env={"SPLIT_KERNEL_CURRENCY": "gbp", "SPLIT_KERNEL_DECIMAL_PLACES": "0"},
        )
        assert config.currency == "GBP"
        assert config.decimal_places == 0
        assert config.member_policy is MemberPolicy.AUTO_REGISTER

    @pytest.mark.parametrize("raw", ["none", "ALL", ""])
    def test_history_limit_unlimited(self, raw):
        config = apply_env_overrides(KernelConfig(), {"SPLIT_KERNEL_HISTORY_LIMIT": raw})
        assert config.history_limit is None

    def test_history_limit_int(self):
        config = apply_env_overrides(KernelConfig(), {"SPLIT_KERNEL_HISTORY_LIMIT": "3"})
        assert config.history_limit == 3

    def test_bad_int(self):
        with pytest.raises(ConfigurationError):
            apply_env_overrides(KernelConfig(), {"SPLIT_KERNEL_DECIMAL_PLACES": "two"})

    def test_member_policy_override(self):
        config = apply_env_overrides(KernelConfig(), {"SPLIT_KERNEL_MEMBER_POLICY": "auto_register"})
        assert config.member_policy is MemberPolicy.AUTO_REGISTER

    def test_unrelated_variables_ignored(self):
        assert apply_env_overrides(KernelConfig(), {"HOME": "/root"}) == KernelConfig()


class TestChecksum:

    def test_stable(self):
        assert compute_checksum(KernelConfig()) == compute_checksum(KernelConfig())
        assert len(compute_checksum(KernelConfig())) == 64

    def test_changes_with_settings(self):
        assert compute_checksum(KernelConfig()) != compute_checksum(KernelConfig(currency="EUR"))
