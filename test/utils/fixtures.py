import os
from unittest.mock import MagicMock

import pytest
from chalice.test import Client

from app import app
from chalicelib.config import Config, set_config
from chalicelib.utils import db
from chalicelib.utils.auth import TokenVerifier
from chalicelib.utils.logger import logger
from chalicelib.utils.s3 import ImageStore, set_image_store
from test.utils.fake_dynamodb import FakeDynamoTable

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

test_config = Config(
    table_name='MenuQrUsersTable-test',
    category_index_name='categoryId-index',
    region='us-east-1',
    jwt_secret='test-secret-which-is-long-enough-for-hs256',
    token_ttl_seconds=3600,
    bcrypt_rounds=4,
    images_bucket='menu-qr-images-test',
    max_image_width=64
)


@pytest.fixture
def fake_table() -> FakeDynamoTable:
    table = FakeDynamoTable(name=test_config.table_name, index_name=test_config.category_index_name)
    set_config(test_config)
    db.set_gen_table(db.MenuTable(test_config, table=table))
    yield table
    db.set_gen_table(None)


@pytest.fixture
def menu_table(fake_table) -> db.MenuTable:
    return db.get_gen_table()


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    set_image_store(ImageStore(test_config, client=client))
    yield client
    set_image_store(None)


@pytest.fixture
def chalice_gateway(fake_table, s3_client) -> Client:
    logger.info(f"chalice_gateway ::: project_dir={PROJECT_DIR}")
    with Client(app, stage_name='test', project_dir=PROJECT_DIR) as client:
        set_config(test_config)
        yield client


def token_for(username: str) -> str:
    return f'Bearer {TokenVerifier(test_config).issue(username)}'
