from chalice import Chalice

from chalicelib import categories, images, menu, products, users
from chalicelib.config import Config, set_config

app = Chalice(app_name='menu-qr')

app.api.binary_types.insert(0, 'multipart/form-data')
app.debug = True

set_config(Config.from_env())


@app.route('/health-check', methods=['GET'], cors=True)
def health_check():
    return {'health': 'check'}


# USERS
@app.route('/signup', methods=['POST'], cors=True)
def signup():
    return users.endpoint_signup(app.current_request)


@app.route('/login', methods=['POST'], cors=True)
def login():
    return users.endpoint_login(app.current_request)


@app.route('/users/{username}', methods=['GET'], cors=True)
def get_profile(username):
    """
    public profile of the menu owner
    """
    return users.endpoint_get_profile(app.current_request, username)


@app.route('/users', methods=['PUT'], cors=True)
def update_profile():
    return users.endpoint_update_profile(app.current_request)


@app.route('/users', methods=['DELETE'], cors=True)
def delete_account():
    """
    deletes the profile with all categories and products of the owner
    """
    return users.endpoint_delete_account(app.current_request)


@app.route('/users/image', methods=['POST'], content_types=['multipart/form-data'], cors=True)
def upload_profile_image():
    return images.endpoint_upload_profile_image(app.current_request)


# CATEGORIES
@app.route('/categories', methods=['GET'], cors=True)
def get_categories():
    """
    owner's menu: categories with all their products
    """
    return categories.endpoint_get_categories(app.current_request)


@app.route('/categories', methods=['POST'], cors=True)
def create_category():
    return categories.endpoint_create_category(app.current_request)


@app.route('/categories/reorder', methods=['POST'], cors=True)
def reorder_categories():
    return categories.endpoint_reorder_categories(app.current_request)


@app.route('/categories/{category_id}', methods=['PUT'], cors=True)
def update_category(category_id):
    return categories.endpoint_update_category(app.current_request, category_id)


@app.route('/categories/{category_id}', methods=['DELETE'], cors=True)
def delete_category(category_id):
    """
    deletes the category with its products
    """
    return categories.endpoint_delete_category(app.current_request, category_id)


# PRODUCTS
@app.route('/categories/{category_id}/products', methods=['POST'], cors=True)
def create_product(category_id):
    return products.endpoint_create_product(app.current_request, category_id)


@app.route('/products/reorder', methods=['POST'], cors=True)
def reorder_products():
    return products.endpoint_reorder_products(app.current_request)


@app.route('/products/{product_id}', methods=['PUT'], cors=True)
def update_product(product_id):
    return products.endpoint_update_product(app.current_request, product_id)


@app.route('/products/{product_id}/active', methods=['PUT'], cors=True)
def set_product_active(product_id):
    return products.endpoint_set_product_active(app.current_request, product_id)


@app.route('/products/{product_id}', methods=['DELETE'], cors=True)
def delete_product(product_id):
    return products.endpoint_delete_product(app.current_request, product_id)


# PUBLIC MENU
@app.route('/menu/{username}', methods=['GET'], cors=True)
def get_public_menu(username):
    """
    Authorization is not needed
    """
    return menu.endpoint_get_public_menu(app.current_request, username)
