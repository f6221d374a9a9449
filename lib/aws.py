from functools import lru_cache

import boto3
from botocore.config import Config

_CLIENT_CONFIG = Config(connect_timeout=2, read_timeout=5, retries={"max_attempts": 2, "mode": "standard"})


@lru_cache(maxsize=1)
def sns_client():
    return boto3.client("sns", config=_CLIENT_CONFIG)


@lru_cache(maxsize=1)
def organizations_client():
    return boto3.client("organizations", config=_CLIENT_CONFIG)
