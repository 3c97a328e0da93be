from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List

from chalice import Response
from chalice.app import Request

from chalicelib.constants.keys_structure import (
    SORT_KEY, CATEGORY_INDEX_KEY, CATEGORY_PREFIX, PRODUCT_PREFIX, user_key, id_from_key
)
from chalicelib.constants.status_codes import http200
from chalicelib.ordering import category_products
from chalicelib.utils import app as utils_app, db as utils_db
from chalicelib.utils.data import to_order
from chalicelib.utils.db import MenuTable
from chalicelib.utils.logger import logger, log_request


def sort_by_order(items: List[Dict]) -> List[Dict]:
    """
    Ascending by order, items without order go last.
    sorted() is stable, equal orders keep the query order
    """
    return sorted(items, key=lambda item: (to_order(item.get('order')) is None, to_order(item.get('order')) or 0))


def owner_product_view(item: Dict) -> Dict:
    return {
        'productId': id_from_key(item[SORT_KEY]),
        'productName': item.get('productName'),
        'price': item.get('price'),
        'description': item.get('description'),
        'isActive': item.get('isActive', True),
        'order': to_order(item.get('order')),
        'createdAt': item.get('createdAt'),
        'categoryId': id_from_key(item.get(CATEGORY_INDEX_KEY, ''))
    }


def owner_category_view(item: Dict, products: List[Dict]) -> Dict:
    return {
        'categoryId': id_from_key(item[SORT_KEY]),
        'categoryName': item.get('categoryName'),
        'order': to_order(item.get('order')),
        'createdAt': item.get('createdAt'),
        'products': products
    }


def public_product_view(item: Dict) -> Dict:
    return {
        'productId': id_from_key(item[SORT_KEY]),
        'productName': item.get('productName'),
        'price': item.get('price'),
        'description': item.get('description')
    }


def owner_menu(table: MenuTable, username: str) -> Dict:
    """
    Categories with all their products, inactive included.
    The two partition queries run concurrently, each on its own table copy,
    products are grouped in memory
    """
    owner_pk = user_key(username)
    with ThreadPoolExecutor(max_workers=2) as executor:
        categories_future = executor.submit(table.for_worker().query_by_prefix, owner_pk, CATEGORY_PREFIX)
        products_future = executor.submit(table.for_worker().query_by_prefix, owner_pk, PRODUCT_PREFIX)
        category_items = categories_future.result()
        product_items = products_future.result()

    products_by_category = defaultdict(list)
    for product in product_items:
        products_by_category[product.get(CATEGORY_INDEX_KEY)].append(product)

    categories = [
        owner_category_view(
            category,
            [owner_product_view(product) for product in sort_by_order(products_by_category[category[SORT_KEY]])]
        )
        for category in sort_by_order(category_items)
    ]
    logger.info(f'owner_menu ::: {username=}, {len(category_items)} categories, {len(product_items)} products')
    return {'categories': categories}


def public_menu(table: MenuTable, username: str) -> Dict:
    """
    Menu for an anonymous visitor: active products only, without internal fields.
    Unknown owner gets an empty menu
    """
    categories = []
    category_items = sort_by_order(table.query_by_prefix(user_key(username), CATEGORY_PREFIX))
    for category in category_items:
        category_id = id_from_key(category[SORT_KEY])
        products = [
            public_product_view(product)
            for product in sort_by_order(category_products(table, username, category_id))
            if product.get('isActive', True) is not False
        ]
        categories.append({
            'categoryId': category_id,
            'categoryName': category.get('categoryName'),
            'products': products
        })
    logger.info(f'public_menu ::: {username=}, {len(categories)} categories')
    return {'categories': categories}


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_get_public_menu(request: Request, username: str) -> Response:
    log_request(request)
    return Response(status_code=http200, body=public_menu(utils_db.get_gen_table(), username))
