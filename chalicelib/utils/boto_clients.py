import functools

import boto3
from botocore.config import Config as BotoConfig

from chalicelib.config import Config


def aws_config(config: Config) -> BotoConfig:
    # retries and timeouts are left to botocore defaults
    return BotoConfig(region_name=config.region)


# DynamoDB Resource.
# Resources represent an object-oriented interface to AWS services. Every resource instance has attributes and methods.
# Resources are not thread safe, a worker thread builds its own from a new session.
def new_dynamodb_resource(config: Config):
    session = boto3.Session()
    if config.endpoint_url:
        return session.resource('dynamodb', endpoint_url=config.endpoint_url, region_name=config.region)
    return session.resource('dynamodb', config=aws_config(config))


@functools.lru_cache(maxsize=None)
def get_dynamodb_resource(config: Config):
    return new_dynamodb_resource(config)


# S3 Client.
# Clients provide a low-level interface to AWS services whose methods map close to 1:1 with service APIs.
@functools.lru_cache(maxsize=None)
def get_s3_client(config: Config):
    return boto3.client('s3', config=aws_config(config))
