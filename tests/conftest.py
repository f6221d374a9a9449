import base64
import importlib
import json
import pathlib

import pytest
from botocore.exceptions import ClientError

from lib.normalizer import AccessEvent, Identity, IdentityType

FIXTURES = pathlib.Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture():
    def _load(name: str):
        with open(FIXTURES / name, "r") as f:
            return json.load(f)

    return _load


def make_access_event(**overrides) -> AccessEvent:
    fields = dict(
        source_account_id="987654321098",
        target_account_id="123456789012",
        event_name="GetItem",
        event_source="dynamodb",
        event_time=None,
        source_ip="203.0.113.10",
        user_agent="aws-cli/2.15.0",
        identity=Identity(
            type=IdentityType.ASSUMED_ROLE,
            principal_id="AROAEXAMPLE:session",
            arn="arn:aws:sts::987654321098:assumed-role/Reader/session",
            user_name=None,
        ),
        region="us-east-1",
        event_id="e1a2b3c4",
    )
    fields.update(overrides)
    return AccessEvent(**fields)


class FakeSnsClient:
    def __init__(self, fail_times=0):
        self.published = []
        self.fail_times = fail_times

    def publish(self, **kwargs):
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ClientError({"Error": {"Code": "Throttling", "Message": "slow down"}}, "Publish")
        self.published.append(kwargs)
        return {"MessageId": f"msg-{len(self.published)}"}


class FakeOrganizationsClient:
    """describe_account answers for the given member ids; everything else is not found."""

    def __init__(self, org_id="o-abcdef", members=(), error_code=None):
        self.org_id = org_id
        self.members = set(members)
        self.error_code = error_code
        self.calls = []

    def describe_account(self, AccountId):
        self.calls.append(AccountId)
        if self.error_code:
            raise ClientError({"Error": {"Code": self.error_code, "Message": "boom"}}, "DescribeAccount")
        if AccountId not in self.members:
            raise ClientError({"Error": {"Code": "AccountNotFoundException", "Message": "nope"}},
                              "DescribeAccount")
        return {"Account": {
            "Id": AccountId,
            "Arn": f"arn:aws:organizations::111111111111:account/{self.org_id}/{AccountId}",
        }}

    def get_paginator(self, name):
        assert name == "list_accounts"
        members = sorted(self.members)

        class _P:
            def paginate(self_inner):
                yield {"Accounts": [{"Id": a} for a in members[:1]]}
                yield {"Accounts": [{"Id": a} for a in members[1:]]}

        return _P()


def import_main_with_stubs(monkeypatch, sns=None, **env):
    # Ensure env vars are present for the module under test
    monkeypatch.setenv("DEST_TYPES", "sns")
    monkeypatch.setenv("SNS_TOPIC_ARN", "arn:aws:sns:us-east-1:123456789012:CrossAccountAccessAlerts")
    monkeypatch.setenv("LOG_LEVEL", "ERROR")  # keep test output quiet
    monkeypatch.delenv("ORGANIZATION_ID", raising=False)
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    # Stub the SNS client factory so nothing reaches AWS
    sns = sns or FakeSnsClient()
    import lib.destinations.sns_dest as sns_dest
    monkeypatch.setattr(sns_dest, "sns_client", lambda: sns)

    import main
    return importlib.reload(main)


class FakeEvent:
    """Minimal CloudEvent-like wrapper the Pub/Sub handler expects."""

    def __init__(self, payload):
        self.data = {"message": {"data": base64.b64encode(json.dumps(payload).encode())}}
