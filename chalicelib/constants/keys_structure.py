PARTITION_KEY = 'PK'
SORT_KEY = 'SK'
CATEGORY_INDEX_KEY = 'categoryId'

KEY_SEPARATOR = '#'

users_pk = 'USER#{username}'
profile_sk = 'PROFILE'

categories_sk = 'CATEGORY#{category_id}'
products_sk = 'PRODUCT#{product_id}'

gsi_category_products_pk = 'CATEGORY#{category_id}'

profile_image_key = 'users_images/{username}/profile_{timestamp_ms}.png'

CATEGORY_PREFIX = 'CATEGORY#'
PRODUCT_PREFIX = 'PRODUCT#'


def user_key(username: str) -> str:
    return users_pk.format(username=username)


def profile_sort_key() -> str:
    return profile_sk


def category_sort_key(category_id: str) -> str:
    return categories_sk.format(category_id=category_id)


def product_sort_key(product_id: str) -> str:
    return products_sk.format(product_id=product_id)


def category_index_value(category_id: str) -> str:
    """
    Value of the product's categoryId attribute,
    the partition key of the category index.
    Equal to the category's sort key
    """
    return gsi_category_products_pk.format(category_id=category_id)


def id_from_key(key: str) -> str:
    """
    CATEGORY#<id> -> <id>
    """
    return key.split(KEY_SEPARATOR, 1)[1] if KEY_SEPARATOR in key else key


def image_key(username: str, timestamp_ms: int) -> str:
    return profile_image_key.format(username=username, timestamp_ms=timestamp_ms)


def item_key(pk: str, sk: str) -> dict:
    return {PARTITION_KEY: pk, SORT_KEY: sk}
