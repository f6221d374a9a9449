import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as LookupTimeout
from dataclasses import dataclass
from typing import Iterable, Optional, Set

from botocore.exceptions import BotoCoreError, ClientError

from .aws import organizations_client
from .errors import ResolverFailure

DEFAULT_TIMEOUT_SECONDS = 3.0
MEMBERSHIP_SOURCES = ("organizations", "account-list", "static")


@dataclass(frozen=True)
class OrganizationContext:
    organization_id: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.organization_id and self.organization_id.strip())


class MembershipSource(ABC):
    """Answers whether an account belongs to one trusted organization."""

    @abstractmethod
    def is_member(self, account_id: str) -> bool:
        ...


class StaticAllowListSource(MembershipSource):
    def __init__(self, account_ids: Iterable[str]):
        self.account_ids = frozenset(a.strip() for a in account_ids if a and a.strip())

    def is_member(self, account_id: str) -> bool:
        return account_id in self.account_ids


class OrganizationsApiSource(MembershipSource):
    """Looks the account up with organizations:DescribeAccount.

    The call must run from the management account (or a delegated
    administrator) of the organization being checked.
    """

    def __init__(self, organization_id: str, client=None):
        self.organization_id = organization_id
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = organizations_client()
        return self._client

    def is_member(self, account_id: str) -> bool:
        try:
            resp = self.client.describe_account(AccountId=account_id)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "AccountNotFoundException":
                return False
            raise ResolverFailure(f"DescribeAccount failed for {account_id}: {code or e}") from e
        except BotoCoreError as e:
            raise ResolverFailure(f"DescribeAccount failed for {account_id}: {e}") from e

        # arn:aws:organizations::<mgmt>:account/o-xxxxxxxxxx/<account-id>
        arn = (resp.get("Account") or {}).get("Arn", "")
        return f":account/{self.organization_id}/" in arn


class AccountListSource(MembershipSource):
    """Loads the organization's account list once and answers from it."""

    def __init__(self, client=None):
        self._client = client
        self._accounts: Optional[Set[str]] = None

    def _load(self) -> Set[str]:
        client = self._client or organizations_client()
        accounts: Set[str] = set()
        try:
            for page in client.get_paginator("list_accounts").paginate():
                accounts.update(a["Id"] for a in page.get("Accounts", []) if a.get("Id"))
        except (ClientError, BotoCoreError) as e:
            raise ResolverFailure(f"ListAccounts failed: {e}") from e
        logging.info("Loaded %d organization accounts.", len(accounts))
        return accounts

    def is_member(self, account_id: str) -> bool:
        if self._accounts is None:
            self._accounts = self._load()
        return account_id in self._accounts


class MembershipResolver:
    """Bounds a MembershipSource with a timeout and fails open (False) on any error."""

    def __init__(self, source: Optional[MembershipSource], timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.source = source
        self.timeout = timeout

    def is_member(self, account_id: str, org_context: OrganizationContext) -> bool:
        if not org_context.configured:
            return False
        if self.source is None:
            logging.warning("Organization %s configured without a membership source.",
                            org_context.organization_id)
            return False

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="membership")
        try:
            future = executor.submit(self.source.is_member, account_id)
            return bool(future.result(timeout=self.timeout))
        except LookupTimeout:
            logging.warning("membership_lookup_failed: timed out after %ss for account %s (org %s)",
                            self.timeout, account_id, org_context.organization_id)
            return False
        except Exception as e:
            logging.warning("membership_lookup_failed: %s for account %s (org %s)",
                            e, account_id, org_context.organization_id)
            return False
        finally:
            executor.shutdown(wait=False)


def make_resolver(cfg) -> MembershipResolver:
    org = cfg.org_context
    kind = cfg.membership_source
    if not org.configured:
        source = None
    elif kind == "static":
        source = StaticAllowListSource(cfg.trusted_account_ids)
    elif kind == "account-list":
        source = AccountListSource()
    elif kind == "organizations":
        source = OrganizationsApiSource(org.organization_id)
    else:
        raise ValueError(f"Unknown MEMBERSHIP_SOURCE: {kind!r}")
    return MembershipResolver(source, timeout=cfg.membership_timeout)
