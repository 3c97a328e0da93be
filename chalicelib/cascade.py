from typing import Dict

from chalicelib.constants.keys_structure import (
    PARTITION_KEY, SORT_KEY, user_key, profile_sort_key, category_sort_key
)
from chalicelib.ordering import category_products
from chalicelib.saga import Saga
from chalicelib.utils import exceptions
from chalicelib.utils.db import MenuTable
from chalicelib.utils.logger import logger

STEP_QUERY_PRODUCTS = 'query_products'
STEP_DELETE_PRODUCTS = 'delete_products'
STEP_DELETE_CATEGORY = 'delete_category'

STEP_QUERY_ITEMS = 'query_items'
STEP_DELETE_ITEMS = 'delete_items'
STEP_DELETE_PROFILE = 'delete_profile'


def delete_category_cascade(table: MenuTable, username: str, category_id: str) -> Dict:
    """
    Deletes products of the category, then the category itself.
    A failure after the first batch call leaves the table partially mutated -> PartialMutation
    """
    owner_pk = user_key(username)
    category_sk = category_sort_key(category_id)
    if table.get_item(owner_pk, category_sk) is None:
        raise exceptions.NotFound(f'Category {category_id} not found')

    saga = Saga('delete_category')
    products = saga.step(STEP_QUERY_PRODUCTS, category_products, table, username, category_id)
    keys = [(item[PARTITION_KEY], item[SORT_KEY]) for item in products]
    saga.step(STEP_DELETE_PRODUCTS, table.batch_delete, keys,
              mutating=True, atomic=False, applied=[sk for _, sk in keys])
    saga.step(STEP_DELETE_CATEGORY, table.delete_item, owner_pk, category_sk,
              mutating=True, applied=[category_sk])

    logger.info(f'delete_category_cascade ::: {category_id=} deleted with {len(keys)} products')
    return {'categoryId': category_id, 'deletedProducts': len(keys)}


def delete_owner_cascade(table: MenuTable, username: str) -> Dict:
    """
    Deletes every item of the owner's partition, the profile goes last
    so an interrupted deletion can be repeated by the same owner
    """
    owner_pk = user_key(username)
    if table.get_item(owner_pk, profile_sort_key()) is None:
        raise exceptions.NotFound(f'User {username} not found')

    saga = Saga('delete_account')
    items = saga.step(STEP_QUERY_ITEMS, table.query_by_prefix, owner_pk)
    keys = [(item[PARTITION_KEY], item[SORT_KEY]) for item in items if item[SORT_KEY] != profile_sort_key()]
    saga.step(STEP_DELETE_ITEMS, table.batch_delete, keys,
              mutating=True, atomic=False, applied=[sk for _, sk in keys])
    saga.step(STEP_DELETE_PROFILE, table.delete_item, owner_pk, profile_sort_key(),
              mutating=True, applied=[profile_sort_key()])

    logger.info(f'delete_owner_cascade ::: {username=} deleted with {len(keys)} items')
    return {'username': username, 'deletedItems': len(keys)}
