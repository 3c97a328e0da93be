from test.utils.fixtures import fake_table, menu_table, s3_client, chalice_gateway  # noqa: F401
