import pytest

from nixos_deploy.models.config import DeployConfig, TransferStrategy, parse_flag


def build(**overrides):
    values = dict(
        drv_path="/nix/store/a.drv",
        out_path="/nix/store/a",
        target_host="host",
        target_port=22,
        build_on_target="false",
        ssh_private_key="-",
        action="switch",
        delete_older_than="30d",
        run_garbage_collection="true",
    )
    values.update(overrides)
    return DeployConfig.from_arguments(**values)


@pytest.mark.parametrize(
    "value,default,expected",
    [
        ("true", False, True),
        ("false", True, False),
        ("", False, False),
        ("", True, True),
        (None, True, True),
        ("TRUE", True, False),
        ("1", True, False),
    ],
)
def test_parse_flag(value, default, expected):
    assert parse_flag(value, default) is expected


def test_strategy_from_flag():
    assert build(build_on_target="true").strategy is TransferStrategy.REMOTE_BUILD
    assert build(build_on_target="false").strategy is TransferStrategy.LOCAL_BUILD
    assert build(build_on_target="").strategy is TransferStrategy.LOCAL_BUILD


def test_empty_gc_flag_defaults_to_true():
    assert build(run_garbage_collection="").run_garbage_collection is True


@pytest.mark.parametrize("key", ["-", ""])
def test_sentinel_keys_mean_no_key(key):
    config = build(ssh_private_key=key)
    assert config.ssh_private_key is None
    assert not config.has_private_key


def test_key_is_kept_but_not_shown():
    config = build(ssh_private_key="PRIVATE")
    assert config.has_private_key
    assert "PRIVATE" not in repr(config)


def test_build_args_keep_order_after_defaults():
    config = build(extra_build_args=["--option", "cores", "4", "-j", "2"])
    assert config.build_args == (
        "--option", "extra-binary-caches", "https://cache.nixos.org/",
        "--option", "cores", "4", "-j", "2",
    )


def test_custom_binary_cache():
    config = build(binary_cache="https://cache.example/")
    assert config.build_args[:3] == ("--option", "extra-binary-caches", "https://cache.example/")


@pytest.mark.parametrize(
    "spec,tokens",
    [("30d", ["30d"]), ("1 2 3", ["1", "2", "3"]), ("+5", ["+5"]), ("  old ", ["old"]), ("*", ["*"])],
)
def test_retention_tokens(spec, tokens):
    assert build(delete_older_than=spec).retention_tokens == tokens


def test_config_is_immutable():
    config = build()
    with pytest.raises(AttributeError):
        config.action = "boot"
