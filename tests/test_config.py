import yaml
import pytest

from pathlib import Path

from pydantic import ValidationError

from hello_service.config import (
    DeployConfig,
    InstanceConfig,
    get_default_config,
    load_config,
    resolve_config,
)
from hello_service.exceptions import ConfigurationError


def test_get_default_config_overrides():
    prod = get_default_config("prod")
    dev = get_default_config("dev")

    assert prod["instance"]["instance_type"] == "t3.small"
    assert dev["log_level"] == "DEBUG"
    # Restart policy is the same everywhere
    assert prod["service"] == dev["service"] == {"restart": "always", "restart_sec": 1}


def test_load_config_from_yaml(tmp_path: Path, config_dict):
    cfg_dict = config_dict("staging")
    p = tmp_path / "staging.yml"
    p.write_text(yaml.safe_dump(cfg_dict))

    cfg = load_config("staging", config_path=p)

    assert isinstance(cfg, DeployConfig)
    assert cfg.environment == "staging"
    assert cfg.stack_name == "hello-service-staging"
    assert cfg.instance.ami == cfg_dict["instance"]["ami"]


def test_load_config_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config("dev", config_path=tmp_path / "nope.yml")


def test_shipped_config_files_are_valid():
    for env in ["dev", "staging", "prod"]:
        cfg = load_config(env)
        assert cfg.environment == env
        assert cfg.service.restart == "always"
        assert cfg.service.restart_sec == 1
        assert cfg.service.service_type == "simple"
        assert cfg.instance.ingress_ports == [22, 80]


def test_ci_variables_override_yaml(tmp_path: Path, config_dict, monkeypatch):
    p = tmp_path / "dev.yml"
    p.write_text(yaml.safe_dump(config_dict("dev")))
    monkeypatch.setenv("TF_VAR_ami", "ami-0fedcba9876543210")
    monkeypatch.setenv("TF_VAR_instance_type", "t3.nano")

    cfg = load_config("dev", config_path=p)

    assert cfg.instance.ami == "ami-0fedcba9876543210"
    assert cfg.instance.instance_type == "t3.nano"


def test_from_env_respects_env_vars(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "staging")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("AMI_ID", "ami-0aaaabbbbccccdddd")
    monkeypatch.setenv("TF_VAR_ami", "ami-0ignored00000000")
    monkeypatch.setenv("TF_VAR_instance_type", "t3.micro")
    monkeypatch.setenv("ANSIBLE_USER", "admin")

    cfg = DeployConfig.from_env()

    assert cfg.environment == "staging"
    assert cfg.aws_region == "eu-west-1"
    # AMI_ID wins over the CI secret name
    assert cfg.instance.ami == "ami-0aaaabbbbccccdddd"
    assert cfg.instance.instance_type == "t3.micro"
    assert cfg.ansible.user == "admin"


def test_from_env_without_ami_raises():
    with pytest.raises(ConfigurationError):
        DeployConfig.from_env()


def test_resolve_config_falls_back_to_env(monkeypatch, tmp_path: Path):
    monkeypatch.setattr("hello_service.config.DEFAULT_CONFIG_DIR", tmp_path)
    monkeypatch.setenv("TF_VAR_ami", "ami-0123456789abcdef0")

    cfg = resolve_config("staging")

    assert cfg.environment == "staging"
    assert cfg.instance.ami == "ami-0123456789abcdef0"


def test_resolve_config_explicit_missing_path_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        resolve_config("dev", tmp_path / "missing.yml")


def test_invalid_environment_raises(config_dict):
    data = config_dict("dev")
    data["environment"] = "not-a-real-env"
    with pytest.raises(ValidationError):
        DeployConfig(**data)


def test_log_level_is_normalised(config_dict):
    data = config_dict("dev")
    data["log_level"] = "debug"
    assert DeployConfig(**data).log_level == "DEBUG"


def test_invalid_ami_rejected():
    with pytest.raises(ValidationError):
        InstanceConfig(ami="not-an-ami")


def test_ingress_ports_deduplicated_in_order():
    cfg = InstanceConfig(ami="ami-0123", ingress_ports=[80, 22, 80, 443])
    assert cfg.ingress_ports == [80, 22, 443]


def test_ingress_port_out_of_range_rejected():
    with pytest.raises(ValidationError):
        InstanceConfig(ami="ami-0123", ingress_ports=[0])


def test_public_key_read_from_path(tmp_path: Path):
    key = tmp_path / "id_ed25519.pub"
    key.write_text("ssh-ed25519 AAAAC3Nza deployer\n")

    cfg = InstanceConfig(ami="ami-0123", public_key_path=str(key))

    assert cfg.resolve_public_key() == "ssh-ed25519 AAAAC3Nza deployer"


def test_missing_public_key_raises(tmp_path: Path):
    cfg = InstanceConfig(ami="ami-0123", public_key_path=str(tmp_path / "absent.pub"))
    with pytest.raises(ConfigurationError):
        cfg.resolve_public_key()


def test_service_exec_start(sample_config):
    assert sample_config.service.exec_start == (
        "/opt/hello-service/.venv/bin/python /opt/hello-service/src/hello_service/server.py"
    )
    assert sample_config.service.unit_name == "hello-service.service"


def test_interpreter_outside_app_virtualenv_rejected(config_dict):
    data = config_dict("dev")
    data["ansible"]["app_dir"] = "/srv/app"
    data["service"] = {"interpreter": "/usr/bin/python3"}
    with pytest.raises(ValidationError, match="virtualenv"):
        DeployConfig(**data)


def test_explicit_interpreter_inside_virtualenv_kept(config_dict):
    data = config_dict("dev")
    data["ansible"]["app_dir"] = "/srv/app"
    data["service"] = {"interpreter": "/srv/app/.venv/bin/python3.11"}

    cfg = DeployConfig(**data)

    assert cfg.service.interpreter == "/srv/app/.venv/bin/python3.11"
    assert cfg.service.entrypoint == "/srv/app/src/hello_service/server.py"


def test_service_port_must_be_open_in_security_group(config_dict):
    data = config_dict("dev")
    data["service"] = {"port": 8080}
    with pytest.raises(ValidationError, match="ingress_ports"):
        DeployConfig(**data)

    data["instance"]["ingress_ports"] = [22, 8080]
    assert DeployConfig(**data).service.port == 8080
