import functools
from typing import Dict, List, Optional, Tuple

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from chalicelib.config import Config, get_config
from chalicelib.constants.constants import BATCH_WRITE_LIMIT
from chalicelib.constants.keys_structure import PARTITION_KEY, SORT_KEY, CATEGORY_INDEX_KEY, item_key
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import get_dynamodb_resource, new_dynamodb_resource
from chalicelib.utils.logger import logger, log_exception

STORAGE_ERRORS = (ClientError, BotoCoreError)

_TABLE = None


def db_call(func):
    """
        should be used for any get/put/query/update/delete call in the access layer,
        botocore errors are re-raised as StorageUnavailable, nothing is retried here
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args[1:]}, kwargs={kwargs}')
        try:
            result = func(*args, **kwargs)
        except STORAGE_ERRORS as e:
            log_exception(e, status_code=503, msg=f'Got exception while trying to {func.__name__}: ')
            raise exceptions.StorageUnavailable(f'{func.__name__} failed: {e}') from e
        logger.info(f'{func.__name__}:: SUCCESS')
        return result

    return wrapper


def generate_update_expression(update_body: dict) -> Tuple[str, Dict, Dict]:
    """
    Generate SET expression for every field of update_body.
    Attribute names go through placeholders, `order` is a reserved word in DynamoDB
    """
    set_parts = []
    expr_attr_names = {}
    expr_attr_values = {}
    for number, (field, value) in enumerate(update_body.items()):
        expr_attr_names[f'#f{number}'] = field
        expr_attr_values[f':v{number}'] = value
        set_parts.append(f'#f{number} = :v{number}')
    return 'SET ' + ', '.join(set_parts), expr_attr_names, expr_attr_values


def chunked(items: List, size: int) -> List[List]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class MenuTable:
    """
    The single table of the service: PK/SK composite key
    and the category index (hash key categoryId) over products
    """

    def __init__(self, config: Config, table=None):
        self.config = config
        self.index_name: str = config.category_index_name
        self._injected_table = table is not None
        self.table = table if table is not None else get_dynamodb_resource(config).Table(config.table_name)

    def for_worker(self) -> 'MenuTable':
        """
        Copy for another thread, boto3 resources should not be shared between threads.
        An injected table is kept as is
        """
        if self._injected_table:
            return MenuTable(self.config, table=self.table)
        return MenuTable(self.config, table=new_dynamodb_resource(self.config).Table(self.config.table_name))

    @db_call
    def get_item(self, pk: str, sk: str) -> Optional[Dict]:
        result = self.table.get_item(Key=item_key(pk, sk))
        if 'Item' not in result:
            logger.info(f"get_item ::: record {pk=} {sk=} not found")
            return None
        return result['Item']

    @db_call
    def put_item(self, item: Dict) -> None:
        self.table.put_item(Item=item)

    def query_by_prefix(self, pk: str, sk_prefix: Optional[str] = None, filters: Optional[Dict] = None,
                        consistent_read: bool = False) -> List[Dict]:
        """
        :param filters: attribute equality filters, applied by DynamoDB after the key condition
        :param consistent_read: strongly consistent read, only possible on the table itself
        """
        key_condition_expression = Key(PARTITION_KEY).eq(pk)
        if sk_prefix:
            key_condition_expression = key_condition_expression & Key(SORT_KEY).begins_with(sk_prefix)
        filter_expression = None
        for field, value in (filters or {}).items():
            condition = Attr(field).eq(value)
            filter_expression = condition if filter_expression is None else filter_expression & condition
        return self.query_items_paged(key_condition_expression, filter_expression=filter_expression,
                                      consistent_read=consistent_read)

    def query_index(self, index_pk: str) -> List[Dict]:
        return self.query_items_paged(Key(CATEGORY_INDEX_KEY).eq(index_pk), index_name=self.index_name)

    def query_items_paginated(self, key_condition_expression, index_name=None, start_key=None,
                              filter_expression=None, consistent_read=False):
        kwargs = {'KeyConditionExpression': key_condition_expression}
        if index_name:
            kwargs.update({'IndexName': index_name})
        if filter_expression is not None:
            kwargs.update({'FilterExpression': filter_expression})
        if consistent_read:
            kwargs.update({'ConsistentRead': True})
        if start_key:
            kwargs.update({'ExclusiveStartKey': start_key})

        resp = self.table.query(**kwargs)
        return resp['Items'], resp.get('LastEvaluatedKey')

    @db_call
    def query_items_paged(self, key_condition_expression, index_name=None, filter_expression=None,
                          consistent_read=False) -> List[Dict]:
        """ Follows LastEvaluatedKey until the whole result is read """
        all_items = []
        items, last_evaluated_key = self.query_items_paginated(
            key_condition_expression,
            index_name=index_name,
            filter_expression=filter_expression,
            consistent_read=consistent_read
        )
        all_items.extend(items)

        while last_evaluated_key is not None:
            items, last_evaluated_key = self.query_items_paginated(
                key_condition_expression,
                index_name=index_name,
                start_key=last_evaluated_key,
                filter_expression=filter_expression,
                consistent_read=consistent_read
            )
            all_items.extend(items)

        return all_items

    @db_call
    def update_fields(self, pk: str, sk: str, fields: Dict) -> Dict:
        """
        Partial merge of attributes. An absent item is created with the given fields only
        """
        if not fields:
            raise exceptions.ValidationError('No fields provided for update')
        if PARTITION_KEY in fields or SORT_KEY in fields:
            raise exceptions.ValidationError('Key attributes could not be updated')
        set_expr, expr_attr_names, expr_attr_values = generate_update_expression(fields)
        resp = self.table.update_item(
            Key=item_key(pk, sk),
            UpdateExpression=set_expr,
            ExpressionAttributeNames=expr_attr_names,
            ExpressionAttributeValues=expr_attr_values,
            ReturnValues='UPDATED_NEW'
        )
        return resp.get('Attributes', {})

    @db_call
    def delete_item(self, pk: str, sk: str) -> Optional[Dict]:
        """
        :return:
        attributes of the deleted item, None if there was nothing to delete
        """
        resp = self.table.delete_item(Key=item_key(pk, sk), ReturnValues='ALL_OLD')
        return resp.get('Attributes')

    def batch_delete(self, keys: List[Tuple[str, str]]) -> int:
        """
        Deletes keys in chunks of BATCH_WRITE_LIMIT, one batch call per chunk, in the given order.
        The first failed chunk stops the loop with StorageUnavailable, earlier chunks stay deleted
        :return:
        number of batch calls made
        """
        chunks = chunked(keys, BATCH_WRITE_LIMIT)
        for number, chunk in enumerate(chunks, start=1):
            self._batch_delete_chunk(chunk)
            logger.info(f'batch_delete ::: chunk {number}/{len(chunks)}, {len(chunk)} keys deleted')
        return len(chunks)

    @db_call
    def _batch_delete_chunk(self, chunk: List[Tuple[str, str]]) -> None:
        table_name = self.table.name
        request_items = {table_name: [{'DeleteRequest': {'Key': item_key(pk, sk)}} for pk, sk in chunk]}
        resp = self.table.meta.client.batch_write_item(RequestItems=request_items)
        unprocessed = resp.get('UnprocessedItems', {}).get(table_name, [])
        if unprocessed:
            raise exceptions.StorageUnavailable(
                f'{len(unprocessed)} of {len(chunk)} delete requests were not processed'
            )


def get_gen_table() -> MenuTable:
    global _TABLE
    if _TABLE is None:
        _TABLE = MenuTable(get_config())
    return _TABLE


def set_gen_table(table: Optional[MenuTable]) -> None:
    global _TABLE
    _TABLE = table
