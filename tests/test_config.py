import logging

import pytest

from config import load_config


def test_defaults(monkeypatch):
    for k in ("LOG_LEVEL", "DEST_TYPES", "DEST_TYPE", "MONITORED_SERVICES", "ORGANIZATION_ID",
              "CURRENT_ACCOUNT_ID", "MEMBERSHIP_SOURCE", "TRUSTED_ACCOUNT_IDS", "MEMBERSHIP_TIMEOUT_SECONDS"):
        monkeypatch.delenv(k, raising=False)

    cfg = load_config()
    assert cfg.log_level == logging.INFO
    assert cfg.dest_types == "sns"
    assert cfg.monitored_services == frozenset({"dynamodb", "s3", "ec2", "rds", "lambda"})
    assert cfg.organization_id is None
    assert not cfg.org_context.configured
    assert cfg.membership_timeout == 3.0


def test_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MONITORED_SERVICES", "S3, kms ,")
    monkeypatch.setenv("ORGANIZATION_ID", " o-abcdef ")
    monkeypatch.setenv("MEMBERSHIP_SOURCE", "Static")
    monkeypatch.setenv("TRUSTED_ACCOUNT_IDS", "111111111111,222222222222")
    monkeypatch.setenv("MEMBERSHIP_TIMEOUT_SECONDS", "not-a-number")

    cfg = load_config()
    assert cfg.log_level == logging.DEBUG
    assert cfg.monitored_services == frozenset({"s3", "kms"})
    assert cfg.org_context.organization_id == "o-abcdef"
    assert cfg.membership_source == "static"
    assert cfg.trusted_account_ids == ("111111111111", "222222222222")
    assert cfg.membership_timeout == 3.0


def test_unknown_membership_source_fails_at_load(monkeypatch):
    monkeypatch.setenv("MEMBERSHIP_SOURCE", "ldap")
    with pytest.raises(ValueError, match="MEMBERSHIP_SOURCE"):
        load_config()
