# None value means the key is removed from the processed dict

from_db = {
    'PK': None,
    'SK': None,
    'password': None,
    'record_type': None
}

public_profile = {
    **from_db,
    'updatedAt': None
}
