from decimal import Decimal
from typing import Callable, Dict, List, Tuple

from chalicelib.constants.keys_structure import (
    PARTITION_KEY, SORT_KEY, CATEGORY_INDEX_KEY, CATEGORY_PREFIX, PRODUCT_PREFIX,
    user_key, category_index_value, category_sort_key, product_sort_key, id_from_key
)
from chalicelib.saga import Saga
from chalicelib.utils import exceptions
from chalicelib.utils.db import MenuTable
from chalicelib.utils.logger import logger


def category_products(table: MenuTable, username: str, category_id: str) -> List[Dict]:
    """
    Products of the category through the category index.
    The index is shared by all owners, items of other partitions are filtered out
    """
    owner_pk = user_key(username)
    return [
        item for item in table.query_index(category_index_value(category_id))
        if item.get(PARTITION_KEY) == owner_pk and item.get(SORT_KEY, '').startswith(PRODUCT_PREFIX)
    ]


def next_category_order(table: MenuTable, username: str) -> int:
    categories = table.query_by_prefix(user_key(username), CATEGORY_PREFIX, consistent_read=True)
    return len(categories) + 1


def next_product_order(table: MenuTable, username: str, category_id: str) -> int:
    """
    Counted in the owner partition, the category index is only eventually consistent
    """
    products = table.query_by_prefix(user_key(username), PRODUCT_PREFIX,
                                     filters={CATEGORY_INDEX_KEY: category_index_value(category_id)},
                                     consistent_read=True)
    return len(products) + 1


def _to_position(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal) and value == value.to_integral_value():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


def validate_reorder_pairs(pairs) -> List[Tuple[str, int]]:
    """
    Every pair is {"id": <non empty str>, "order": <positive int>}, ids are unique.
    Nothing is written when any pair is invalid
    """
    if not isinstance(pairs, list) or not pairs:
        raise exceptions.ValidationError('Reorder body should contain a non-empty list of {id, order}')

    validated = []
    seen_ids = set()
    for pair in pairs:
        if not isinstance(pair, dict):
            raise exceptions.ValidationError(f'Reorder item should be an object, got {pair!r}')
        id_ = pair.get('id')
        if not isinstance(id_, str) or not id_:
            raise exceptions.ValidationError(f'Reorder item id should be a non-empty string, got {id_!r}')
        order = _to_position(pair.get('order'))
        if order is None:
            raise exceptions.ValidationError(f'Order of {id_} should be a positive integer, got {pair.get("order")!r}')
        if id_ in seen_ids:
            raise exceptions.ValidationError(f'Duplicate id={id_} in reorder list')
        seen_ids.add(id_)
        validated.append((id_, order))
    return validated


def apply_reorder(table: MenuTable, username: str, pairs, sort_key_func: Callable[[str], str],
                  operation: str, existing_ids=None) -> List[str]:
    """
    Sets `order` of each item with an independent update, in the given order.
    :param existing_ids: when given, ids outside of it are rejected before any write
    :return:
    ids which were updated
    """
    validated = validate_reorder_pairs(pairs)
    if existing_ids is not None:
        unknown = [id_ for id_, _ in validated if id_ not in existing_ids]
        if unknown:
            raise exceptions.NotFound(f'{operation} ::: unknown ids: {", ".join(unknown)}')

    owner_pk = user_key(username)
    saga = Saga(operation)
    for id_, order in validated:
        saga.step(f'update_order:{id_}', table.update_fields, owner_pk, sort_key_func(id_), {'order': order},
                  mutating=True, applied=[id_])
    logger.info(f'{operation} ::: {len(saga.applied)} items reordered for {username=}')
    return saga.applied


def reorder_categories(table: MenuTable, username: str, pairs) -> List[str]:
    existing_ids = {id_from_key(item[SORT_KEY]) for item in table.query_by_prefix(user_key(username), CATEGORY_PREFIX)}
    return apply_reorder(table, username, pairs, category_sort_key, 'reorder_categories', existing_ids)


def reorder_products(table: MenuTable, username: str, pairs) -> List[str]:
    existing_ids = {id_from_key(item[SORT_KEY]) for item in table.query_by_prefix(user_key(username), PRODUCT_PREFIX)}
    return apply_reorder(table, username, pairs, product_sort_key, 'reorder_products', existing_ids)
